from __future__ import annotations

import threading
from typing import Any, Callable, Optional

from .tasks import UITaskQueue

CLEAR_AFTER_SECONDS = 3.0

TimerFactory = Callable[[float, Callable[[], None]], Any]


class Notifier:
    """Show a transient message in the info pane.

    Each ``notify`` supersedes the previous one: the pending clear is
    canceled and a new one is scheduled. The timer thread only enqueues the
    clear; the UI loop performs it when draining ``tasks``.
    """

    def __init__(
        self,
        display: Callable[[str], None],
        tasks: UITaskQueue,
        *,
        clear_after: float = CLEAR_AFTER_SECONDS,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._display = display
        self._tasks = tasks
        self.clear_after = clear_after
        self._timer_factory = timer_factory
        self._timer: Optional[Any] = None
        self._generation = 0
        self.message = ""

    def notify(self, message: str) -> None:
        self.message = message
        self._display(message)
        self._generation += 1
        self._reschedule(self._generation)

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def _reschedule(self, generation: int) -> None:
        self.cancel()
        timer = self._timer_factory(self.clear_after, lambda: self._expire(generation))
        if hasattr(timer, "daemon"):
            timer.daemon = True
        timer.start()
        self._timer = timer

    def _expire(self, generation: int) -> None:
        # Runs on the timer thread.
        self._tasks.put(lambda: self._clear(generation))

    def _clear(self, generation: int) -> None:
        # A clear queued just before a newer notify must not wipe the new text.
        if generation != self._generation:
            return
        self._timer = None
        self.message = ""
        self._display("")
