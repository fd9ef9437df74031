import io
import unittest
from contextlib import redirect_stdout
from unittest import mock

from prompt_toolkit.input import DummyInput
from prompt_toolkit.output import DummyOutput

from httplab import __version__
from httplab.cli.app import KEYMAP, SAVED_MESSAGE, HttplabUI, main, resolve_settings
from httplab.cli.panes import LayoutError
from httplab.core.notify import Notifier
from httplab.core.response import Response, ResponseStore


class FakeTimer:
    def __init__(self, interval, function) -> None:
        self.interval = interval
        self.function = function

    def start(self) -> None:
        pass

    def cancel(self) -> None:
        pass


class HttplabUITests(unittest.TestCase):
    def setUp(self) -> None:
        self.previous = Response(status=404, headers={"A": ["B"]}, body=b"x", delay_ms=50)
        self.store = ResponseStore(self.previous)
        self.ui = HttplabUI(self.store, input=DummyInput(), output=DummyOutput())
        self.ui.notifier = Notifier(
            self.ui._show_info, self.ui.tasks, timer_factory=FakeTimer
        )
        self.ui.layout(80, 24)

    def _type(self, name: str, text: str) -> None:
        self.ui.registry.get(name).buffer.text = text

    def test_layout_focuses_status_window(self) -> None:
        self.assertEqual(self.ui.registry.focused, "status")
        status = self.ui.registry.get("status")
        self.assertIs(self.ui.app.layout.current_window, status.window)

    def test_successful_save_replaces_response_and_notifies(self) -> None:
        self._type("status", "201")
        self._type("headers", "X-Server: HTTPLab\nFoo: Bar\n")
        self._type("body", "created")
        self._type("delay", "100\n")

        response = self.ui.save()

        self.assertIsNotNone(response)
        self.assertIs(self.ui.response(), response)
        self.assertEqual(
            response,
            Response(
                status=201,
                headers={"X-Server": ["HTTPLab"], "Foo": ["Bar"]},
                body=b"created",
                delay_ms=100,
            ),
        )
        self.assertEqual(self.ui.registry.text("info"), SAVED_MESSAGE)

    def test_failed_save_keeps_response_and_reports_error(self) -> None:
        self._type("status", "abc")
        self.assertIsNone(self.ui.save())
        self.assertIs(self.ui.response(), self.previous)
        self.assertIn("abc", self.ui.registry.text("info"))

        self._type("status", "200")
        self._type("headers", "NoColonHere")
        self.assertIsNone(self.ui.save())
        self.assertIs(self.ui.response(), self.previous)
        self.assertIn("NoColonHere", self.ui.registry.text("info"))

    def test_cycle_focus_follows_pane_order(self) -> None:
        order = [self.ui.cycle_focus().name for _ in range(5)]
        self.assertEqual(order, ["delay", "headers", "body", "request", "status"])
        self.assertIs(
            self.ui.app.layout.current_window, self.ui.registry.get("status").window
        )

    def test_display_is_applied_when_tasks_drain(self) -> None:
        self.ui.display("request", "POST /hook HTTP/1.1\n")
        self.assertEqual(self.ui.registry.text("request"), "")
        self.ui.tasks.drain()
        self.assertEqual(self.ui.registry.text("request"), "POST /hook HTTP/1.1\n")

    def test_before_render_drains_tasks_and_relayouts_on_resize(self) -> None:
        self.ui.display("request", "GET / HTTP/1.1\n")
        self.ui._before_render(self.ui.app)
        self.assertEqual(self.ui.registry.text("request"), "GET / HTTP/1.1\n")
        size = self.ui.app.output.get_size()
        self.assertEqual(
            self.ui.registry.get("info").region.y1, size.rows - 1
        )

    def test_before_render_exits_on_layout_error(self) -> None:
        self.ui.app.exit = mock.Mock()  # type: ignore[method-assign]
        self.ui._size = None
        with mock.patch.object(
            self.ui.registry, "layout", side_effect=LayoutError("delay", 10, 2)
        ):
            self.ui._before_render(self.ui.app)
            self.ui._before_render(self.ui.app)
        self.ui.app.exit.assert_called_once()
        exception = self.ui.app.exit.call_args.kwargs["exception"]
        self.assertIsInstance(exception, LayoutError)

    def test_keymap_bindings_are_registered(self) -> None:
        bindings = self.ui.app.key_bindings
        self.assertEqual(set(KEYMAP), {"cycle", "save", "quit"})
        self.assertEqual(len(bindings.bindings), 3)


class ResolveSettingsTests(unittest.TestCase):
    def test_flags_override_environment(self) -> None:
        with mock.patch.dict("os.environ", {"HTTPLAB_PORT": "9000"}, clear=True):
            settings, show_version = resolve_settings(["--port", "8080", "--debug"])
        self.assertEqual(settings.port, 8080)
        self.assertEqual(settings.debug, "all")
        self.assertFalse(show_version)

    def test_environment_used_without_flags(self) -> None:
        with mock.patch.dict("os.environ", {"HTTPLAB_PORT": "9000"}, clear=True):
            settings, show_version = resolve_settings(["-v"])
        self.assertEqual(settings.port, 9000)
        self.assertTrue(show_version)

    def test_main_prints_version(self) -> None:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            main(["--version"])
        self.assertEqual(buffer.getvalue().strip(), f"httplab {__version__}")


if __name__ == "__main__":
    unittest.main()
