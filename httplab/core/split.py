from __future__ import annotations

from typing import List


class Split:
    """Partition an integer extent into consecutive boundaries.

    Directives are queued with :meth:`fixed` and :meth:`relative` and consumed
    one per :meth:`next` call. Every directive reserves a number of units past
    the current boundary; once the queue is empty the boundary jumps to the
    total extent so the last region takes whatever space is left.
    """

    def __init__(self, total: int) -> None:
        self.total = max(0, total)
        self._pending: List[int] = []
        self._current = 0

    def fixed(self, *sizes: int) -> "Split":
        self._pending.extend(sizes)
        return self

    def relative(self, *percents: int) -> "Split":
        for percent in percents:
            self._pending.append(self.total * percent // 100)
        return self

    def next(self) -> int:
        if not self._pending:
            self._current = self.total
            return self._current
        reserved = self._pending.pop(0)
        boundary = self._current + max(0, reserved)
        self._current = min(boundary, self.total)
        return self._current

    def current(self) -> int:
        return self._current
