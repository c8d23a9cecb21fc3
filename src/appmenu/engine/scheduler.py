"""Serialized execution contexts for rebuild work."""

from __future__ import annotations

import queue
import threading
from typing import Callable

from appmenu.runtime_logging import get_runtime_logger

Task = Callable[[], None]


class SerialExecutor:
    """One worker thread runs submitted tasks in order; delayed calls feed the same queue."""

    def __init__(self, name: str = "appmenu-rebuild") -> None:
        self._tasks: queue.Queue[Task | None] = queue.Queue()
        self._timers: set[threading.Timer] = set()
        self._lock = threading.Lock()
        self._closed = False
        self._logger = get_runtime_logger(component="scheduler")
        self._thread = threading.Thread(target=self._loop, name=name, daemon=True)
        self._thread.start()

    def submit(self, task: Task) -> None:
        if self._closed:
            return
        self._tasks.put(task)

    def call_later(self, delay_s: float, task: Task) -> None:
        with self._lock:
            if self._closed:
                return
            timer = threading.Timer(delay_s, self._fire, args=(task,))
            timer.daemon = True
            self._timers.add(timer)
        timer.start()

    def _fire(self, task: Task) -> None:
        with self._lock:
            self._timers.discard(threading.current_thread())  # type: ignore[arg-type]
        self.submit(task)

    def _loop(self) -> None:
        while True:
            task = self._tasks.get()
            if task is None:
                return
            try:
                task()
            except Exception as exc:
                self._logger.error("scheduler.task.failed", error=str(exc))

    def close(self, timeout: float = 2.0) -> None:
        with self._lock:
            self._closed = True
            timers = list(self._timers)
            self._timers.clear()
        for timer in timers:
            timer.cancel()
        self._tasks.put(None)
        self._thread.join(timeout=timeout)


class ManualScheduler:
    """Runs submitted tasks inline and holds delayed calls until ``fire_due``.

    Used by tests and one-shot tools that drive the rebuild cycle by hand.
    """

    def __init__(self) -> None:
        self.delayed: list[tuple[float, Task]] = []

    def submit(self, task: Task) -> None:
        task()

    def call_later(self, delay_s: float, task: Task) -> None:
        self.delayed.append((delay_s, task))

    def fire_due(self) -> int:
        fired = 0
        while self.delayed:
            _, task = self.delayed.pop(0)
            task()
            fired += 1
        return fired

    def close(self, timeout: float = 0.0) -> None:  # noqa: ARG002
        self.delayed.clear()
