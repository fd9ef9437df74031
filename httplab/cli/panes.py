from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.layout.containers import Float, FloatContainer, Window
from prompt_toolkit.layout.controls import BufferControl
from prompt_toolkit.widgets import Frame

from ..core.response import Response
from ..core.split import Split
from .editors import EditorPolicy, create_editor_bindings

MIN_PANE_EXTENT = 3
REQUEST_WIDTH_PERCENT = 70
INFO_ROWS = 4
DEFAULT_FOCUS = "status"


class LayoutError(RuntimeError):
    """The terminal is too small to hold every pane."""

    def __init__(self, name: str, width: int, height: int) -> None:
        super().__init__(
            f"Terminal too small: pane '{name}' would be {width}x{height}, "
            f"needs at least {MIN_PANE_EXTENT}x{MIN_PANE_EXTENT}"
        )
        self.name = name
        self.width = width
        self.height = height


@dataclass(frozen=True)
class Region:
    """Inclusive rectangle in terminal cells."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0 + 1

    @property
    def height(self) -> int:
        return self.y1 - self.y0 + 1


@dataclass(frozen=True)
class PaneSpec:
    name: str
    title: Optional[str]
    editable: bool
    policy: EditorPolicy
    focusable: bool = True
    multiline: bool = True


PANE_SPECS: Dict[str, PaneSpec] = {
    spec.name: spec
    for spec in (
        PaneSpec("request", "Request", False, EditorPolicy.NAVIGATION),
        PaneSpec("status", "Status", True, EditorPolicy.NUMERIC, multiline=False),
        PaneSpec("delay", "Delay (ms)", True, EditorPolicy.FREE_TEXT),
        PaneSpec("headers", "Headers", True, EditorPolicy.FREE_TEXT),
        PaneSpec("body", "Body", True, EditorPolicy.FREE_TEXT),
        PaneSpec("info", None, False, EditorPolicy.NAVIGATION, focusable=False),
    )
}


class Pane:
    """A named text region placed on the screen as a framed float."""

    def __init__(self, spec: PaneSpec, region: Region, text: str = "") -> None:
        self.spec = spec
        self.region = region
        self.buffer = Buffer(
            document=Document(text, 0),
            read_only=not spec.editable,
            multiline=spec.multiline,
            name=spec.name,
        )
        self.control = BufferControl(
            buffer=self.buffer,
            key_bindings=create_editor_bindings(spec.policy),
            focusable=spec.focusable,
        )
        self.window = Window(self.control, wrap_lines=spec.multiline)
        self.frame = Frame(self.window, title=spec.title or "")
        self.float = Float(content=self.frame)
        self.place(region)

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def title(self) -> Optional[str]:
        return self.spec.title

    @property
    def editable(self) -> bool:
        return self.spec.editable

    @property
    def policy(self) -> EditorPolicy:
        return self.spec.policy

    @property
    def text(self) -> str:
        return self.buffer.text

    def set_text(self, text: str) -> None:
        self.buffer.set_document(Document(text, 0), bypass_readonly=True)

    def place(self, region: Region) -> None:
        self.region = region
        self.float.left = region.x0
        self.float.top = region.y0
        self.float.width = region.width
        self.float.height = region.height


def seed_text(name: str, response: Response) -> str:
    """Initial pane text derived from the stored response."""
    if name == "status":
        return str(response.status)
    if name == "delay":
        return str(response.delay_ms)
    if name == "headers":
        return "".join(f"{line}\n" for line in response.header_lines())
    if name == "body":
        return response.body.decode("utf-8", errors="replace")
    return ""


class PaneRegistry:
    """Creates panes on the first layout pass and moves them afterwards."""

    def __init__(
        self,
        response: Callable[[], Response],
        *,
        on_focus: Optional[Callable[[Pane], None]] = None,
    ) -> None:
        self._response = response
        self._panes: Dict[str, Pane] = {}
        self.container = FloatContainer(content=Window(), floats=[])
        self.on_focus = on_focus
        self.focused: Optional[str] = None

    def __contains__(self, name: object) -> bool:
        return name in self._panes

    def get(self, name: str) -> Pane:
        return self._panes[name]

    def panes(self) -> List[Pane]:
        return list(self._panes.values())

    def text(self, name: str) -> str:
        pane = self._panes.get(name)
        return pane.text if pane is not None else ""

    def set_text(self, name: str, text: str) -> None:
        self._panes[name].set_text(text)

    def focus(self, name: str) -> Pane:
        pane = self._panes[name]
        self.focused = name
        if self.on_focus is not None:
            self.on_focus(pane)
        return pane

    def compute_regions(self, width: int, height: int) -> Dict[str, Region]:
        split_x = Split(width).relative(REQUEST_WIDTH_PERCENT)
        split_y = Split(height).fixed(height - INFO_ROWS)

        regions = {"request": Region(0, 0, split_x.next(), split_y.next())}

        x0, x1 = split_x.current() + 1, width - 1
        bottom = split_y.current()
        split = Split(bottom).fixed(2, 3).relative(40)
        regions["status"] = Region(x0, 0, x1, split.next())
        regions["delay"] = Region(x0, split.current() + 1, x1, split.next())
        regions["headers"] = Region(x0, split.current() + 1, x1, split.next())
        regions["body"] = Region(x0, split.current() + 1, x1, bottom)

        regions["info"] = Region(0, bottom + 1, width - 1, height - 1)

        for name, region in regions.items():
            if region.width < MIN_PANE_EXTENT or region.height < MIN_PANE_EXTENT:
                raise LayoutError(name, region.width, region.height)
        return regions

    def layout(self, width: int, height: int) -> Dict[str, Region]:
        regions = self.compute_regions(width, height)
        response: Optional[Response] = None
        for name, region in regions.items():
            pane = self._panes.get(name)
            if pane is not None:
                pane.place(region)
                continue
            if response is None:
                response = self._response()
            pane = Pane(PANE_SPECS[name], region, seed_text(name, response))
            self._panes[name] = pane
            self.container.floats.append(pane.float)
        if self.focused is None:
            self.focus(DEFAULT_FOCUS)
        return regions
