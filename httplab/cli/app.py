from __future__ import annotations

import argparse
import errno
import sys
from typing import Any, Optional, Tuple

from prompt_toolkit.application import Application
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import Layout
from prompt_toolkit.styles import Style
from rich.console import Console
from rich.panel import Panel

from ..config import HttplabPaths, HttplabSettings, load_settings
from ..core.focus import next_focus
from ..core.notify import Notifier
from ..core.response import (
    InvalidStatus,
    Response,
    ResponseParseError,
    ResponseStore,
    parse_status,
)
from ..core.session_log import (
    SessionLogger,
    log_error,
    log_exception,
    log_info,
    log_warn,
    set_active_logger,
)
from ..core.tasks import UITaskQueue
from ..server import MockServer
from .panes import LayoutError, Pane, PaneRegistry

KEYMAP = {
    "cycle": "tab",
    "save": "c-s",
    "quit": "c-c",
}

SAVED_MESSAGE = "Response saved!"

STYLE = Style.from_dict(
    {
        "": "bg:#1e1e1e #d4d4d4",
        "frame.border": "#3a3a3a",
        "frame.label": "bold #c5c5c5",
    }
)


class HttplabUI:
    """Interactive editor for the mock response."""

    def __init__(
        self,
        store: Optional[ResponseStore] = None,
        *,
        notifier: Optional[Notifier] = None,
        input: Any = None,
        output: Any = None,
    ) -> None:
        self.store = store or ResponseStore()
        self.registry = PaneRegistry(self.store.get, on_focus=self._focus_window)
        self.tasks = UITaskQueue()
        self.notifier = notifier or Notifier(self._show_info, self.tasks)
        self._size: Optional[Tuple[int, int]] = None
        self.app: Application = Application(
            layout=Layout(self.registry.container),
            key_bindings=self._bind_keys(),
            style=STYLE,
            full_screen=True,
            mouse_support=False,
            before_render=self._before_render,
            input=input,
            output=output,
        )
        self.tasks.wakeup = self.app.invalidate

    def response(self) -> Response:
        return self.store.get()

    def layout(self, width: int, height: int) -> None:
        self.registry.layout(width, height)
        self._size = (width, height)

    def save(self) -> Optional[Response]:
        try:
            response = self.store.save(
                self.registry.text("status"),
                self.registry.text("headers"),
                self.registry.text("body"),
                self.registry.text("delay"),
            )
        except ResponseParseError as exc:
            log_warn("ui", "response.invalid", {"error": str(exc)})
            self.notifier.notify(str(exc))
            return None
        log_info(
            "ui",
            "response.saved",
            {"status": response.status, "delay_ms": response.delay_ms},
        )
        self.notifier.notify(SAVED_MESSAGE)
        return response

    def cycle_focus(self) -> Pane:
        return self.registry.focus(next_focus(self.registry.focused))

    def display(self, name: str, text: str) -> None:
        """Replace a pane's text from any thread."""
        self.tasks.put(lambda: self.registry.set_text(name, text))

    def run(self) -> None:
        size = self.app.output.get_size()
        self.layout(size.columns, size.rows)
        self.app.run()

    def _show_info(self, message: str) -> None:
        if "info" in self.registry:
            self.registry.set_text("info", message)

    def _focus_window(self, pane: Pane) -> None:
        self.app.layout.focus(pane.window)

    def _before_render(self, app: Application) -> None:
        self.tasks.drain()
        size = app.output.get_size()
        if self._size == (size.columns, size.rows):
            return
        try:
            self.layout(size.columns, size.rows)
        except LayoutError as exc:
            log_error("ui", "layout.fatal", {"error": str(exc)})
            # Record the size so the failing layout is not retried every frame.
            self._size = (size.columns, size.rows)
            app.exit(exception=exc)

    def _bind_keys(self) -> KeyBindings:
        bindings = KeyBindings()

        @bindings.add(KEYMAP["quit"])
        def _quit(event) -> None:  # type: ignore[no-untyped-def]
            self.notifier.cancel()
            event.app.exit()

        @bindings.add(KEYMAP["save"])
        def _save(event) -> None:  # type: ignore[no-untyped-def]
            self.save()

        @bindings.add(KEYMAP["cycle"])
        def _cycle(event) -> None:  # type: ignore[no-untyped-def]
            self.cycle_focus()

        return bindings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="HTTPLab - interactive web server for testing HTTP clients"
    )
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    parser.add_argument("--host", help="Address the mock server binds to")
    parser.add_argument("-p", "--port", type=int, help="Port the mock server listens on")
    parser.add_argument("-s", "--status", type=int, help="Initial response status code")
    parser.add_argument(
        "--debug",
        nargs="?",
        const="all",
        help="Write session logs (all, session, error, warn, info, debug)",
    )
    return parser


def resolve_settings(argv: Optional[list[str]] = None) -> Tuple[HttplabSettings, bool]:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings().merged(
        host=args.host,
        port=args.port,
        status=args.status,
        debug=args.debug,
    )
    try:
        parse_status(str(settings.status))
    except InvalidStatus as exc:
        parser.error(str(exc))
    return settings, bool(args.version)


def main(argv: Optional[list[str]] = None) -> None:
    settings, show_version = resolve_settings(argv)
    if show_version:
        from httplab import __version__

        print(f"httplab {__version__}")
        return

    console = Console(stderr=True)
    logger = SessionLogger(HttplabPaths(), settings.debug)
    set_active_logger(logger)
    store = ResponseStore(Response(status=settings.status))
    ui = HttplabUI(store)
    try:
        server = MockServer(
            store,
            lambda text: ui.display("request", text),
            host=settings.host,
            port=settings.port,
        )
        server.start()
        try:
            ui.run()
        finally:
            server.stop()
    except LayoutError as exc:
        log_error("cli", "layout.fatal", {"error": str(exc)})
        console.print(Panel(str(exc), title="httplab", border_style="red"))
        raise SystemExit(1)
    except KeyboardInterrupt:
        return
    except OSError as exc:
        if exc.errno == errno.EADDRINUSE:
            console.print(
                Panel(
                    f"Cannot listen on {settings.host}:{settings.port}: {exc.strerror}",
                    title="httplab",
                    border_style="red",
                )
            )
            raise SystemExit(1)
        log_exception("cli", exc)
        raise
    finally:
        logger.close()
        set_active_logger(None)


if __name__ == "__main__":
    main(sys.argv[1:])
