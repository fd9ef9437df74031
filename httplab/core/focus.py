from __future__ import annotations

from typing import Optional, Sequence

CYCLEABLE: Sequence[str] = (
    "status",
    "delay",
    "headers",
    "body",
    "request",
)


def next_focus(current: Optional[str], order: Sequence[str] = CYCLEABLE) -> str:
    """Return the pane that should receive focus after ``current``."""
    if current is None or current not in order:
        return order[0]
    index = order.index(current)
    return order[(index + 1) % len(order)]
