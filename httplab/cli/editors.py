from __future__ import annotations

from enum import Enum

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.keys import Keys

from ..core.response import MAX_STATUS_DIGITS

KEY_LEFT = "left"
KEY_RIGHT = "right"
KEY_UP = "up"
KEY_DOWN = "down"
KEY_HOME = "home"
KEY_END = "end"
KEY_BACKSPACE = "backspace"
KEY_DELETE = "delete"
KEY_ENTER = "enter"
KEY_CHAR = "char"

NAMED_KEYS = (
    KEY_LEFT,
    KEY_RIGHT,
    KEY_UP,
    KEY_DOWN,
    KEY_HOME,
    KEY_END,
    KEY_BACKSPACE,
    KEY_DELETE,
    KEY_ENTER,
)

# Default emacs bindings that insert text without going through Keys.Any:
# yank, yank-pop, yank-last-arg, yank-nth-arg and quoted-insert.
FOREIGN_INSERT_KEYS = (
    ("c-y",),
    ("escape", "y"),
    ("escape", "."),
    ("escape", "_"),
    ("escape", "c-y"),
    ("c-q",),
)


class EditorPolicy(Enum):
    NAVIGATION = "navigation"
    NUMERIC = "numeric"
    FREE_TEXT = "free_text"


def handle_input(policy: EditorPolicy, buffer: Buffer, key: str, data: str = "") -> bool:
    """Apply one input event to ``buffer``; return True if it was consumed."""
    if policy is EditorPolicy.NAVIGATION:
        return _move_cursor(buffer, key, across_lines=False)
    if policy is EditorPolicy.NUMERIC:
        return _numeric_input(buffer, key, data)
    return _free_text_input(buffer, key, data)


def _move_cursor(buffer: Buffer, key: str, *, across_lines: bool) -> bool:
    if key == KEY_LEFT:
        if across_lines:
            buffer.cursor_position = max(0, buffer.cursor_position - 1)
        else:
            buffer.cursor_left()
    elif key == KEY_RIGHT:
        if across_lines:
            buffer.cursor_position = min(len(buffer.text), buffer.cursor_position + 1)
        else:
            buffer.cursor_right()
    elif key == KEY_UP:
        buffer.cursor_up()
    elif key == KEY_DOWN:
        buffer.cursor_down()
    else:
        return False
    return True


def _numeric_input(buffer: Buffer, key: str, data: str) -> bool:
    if key == KEY_CHAR:
        if not (data.isascii() and data.isdigit()) or len(data) != 1:
            return False
        if len(buffer.text) >= MAX_STATUS_DIGITS:
            return False
        buffer.insert_text(data)
        return True
    if key == KEY_BACKSPACE:
        buffer.delete_before_cursor()
        return True
    return _move_cursor(buffer, key, across_lines=False)


def _free_text_input(buffer: Buffer, key: str, data: str) -> bool:
    if key == KEY_CHAR:
        if not data or not (data.isprintable() or data == "\n"):
            return False
        buffer.insert_text(data)
    elif key == KEY_ENTER:
        buffer.newline(copy_margin=False)
    elif key == KEY_BACKSPACE:
        buffer.delete_before_cursor()
    elif key == KEY_DELETE:
        buffer.delete()
    elif key == KEY_HOME:
        document = buffer.document
        buffer.cursor_position += document.get_start_of_line_position()
    elif key == KEY_END:
        document = buffer.document
        buffer.cursor_position += document.get_end_of_line_position()
    else:
        return _move_cursor(buffer, key, across_lines=True)
    return True


def create_editor_bindings(policy: EditorPolicy) -> KeyBindings:
    """Key bindings routing a pane's input through ``policy``.

    Attached to the pane's control, so they take precedence over the default
    editing bindings while the pane has focus. Panes that do not accept free
    text also swallow the default yank and quoted-insert keys.
    """
    bindings = KeyBindings()

    # Key names double as prompt_toolkit key identifiers.
    for key in NAMED_KEYS:

        def _handler(event, key: str = key) -> None:  # type: ignore[no-untyped-def]
            handle_input(policy, event.current_buffer, key)

        bindings.add(key, eager=True)(_handler)

    if policy is not EditorPolicy.FREE_TEXT:
        for keys in FOREIGN_INSERT_KEYS:

            def _ignore(event) -> None:  # type: ignore[no-untyped-def]
                return

            bindings.add(*keys, eager=True)(_ignore)

    @bindings.add(Keys.Any)
    def _char(event) -> None:  # type: ignore[no-untyped-def]
        handle_input(policy, event.current_buffer, KEY_CHAR, event.data)

    @bindings.add(Keys.BracketedPaste)
    def _paste(event) -> None:  # type: ignore[no-untyped-def]
        data = event.data.replace("\r\n", "\n").replace("\r", "\n")
        for ch in data:
            handle_input(policy, event.current_buffer, KEY_CHAR, ch)

    return bindings
