import unittest

from httplab.core.split import Split


class SplitTests(unittest.TestCase):
    def test_relative_reserves_percentage_of_total(self) -> None:
        self.assertEqual(Split(100).relative(70).next(), 70)

    def test_relative_rounds_down(self) -> None:
        self.assertEqual(Split(33).relative(50).next(), 16)

    def test_fixed_boundaries_accumulate(self) -> None:
        split = Split(10).fixed(2, 3)
        self.assertEqual(split.next(), 2)
        self.assertEqual(split.next(), 5)

    def test_current_starts_at_zero_and_tracks_next(self) -> None:
        split = Split(10).fixed(4)
        self.assertEqual(split.current(), 0)
        split.next()
        self.assertEqual(split.current(), 4)

    def test_exhausted_directives_return_total(self) -> None:
        split = Split(24).fixed(2, 3).relative(40)
        self.assertEqual([split.next() for _ in range(5)], [2, 5, 14, 24, 24])

    def test_reservation_past_extent_is_clamped(self) -> None:
        split = Split(10).fixed(8, 8)
        self.assertEqual(split.next(), 8)
        self.assertEqual(split.next(), 10)

    def test_negative_reservation_does_not_move_backwards(self) -> None:
        split = Split(10).fixed(3, -5)
        self.assertEqual(split.next(), 3)
        self.assertEqual(split.next(), 3)

    def test_negative_total_is_treated_as_empty(self) -> None:
        self.assertEqual(Split(-4).fixed(2).next(), 0)


if __name__ == "__main__":
    unittest.main()
