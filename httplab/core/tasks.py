from __future__ import annotations

import queue
from typing import Callable, Optional

Task = Callable[[], None]


class UITaskQueue:
    """Callables handed over from background threads to the UI loop.

    ``put`` may be called from any thread. ``drain`` must only be called by
    the UI loop, which makes it the single writer of pane and model state.
    """

    def __init__(self, wakeup: Optional[Callable[[], None]] = None) -> None:
        self._queue: "queue.SimpleQueue[Task]" = queue.SimpleQueue()
        self.wakeup = wakeup

    def put(self, task: Task) -> None:
        self._queue.put(task)
        if self.wakeup is not None:
            self.wakeup()

    def drain(self) -> int:
        count = 0
        while True:
            try:
                task = self._queue.get_nowait()
            except queue.Empty:
                return count
            task()
            count += 1

    def empty(self) -> bool:
        return self._queue.empty()
