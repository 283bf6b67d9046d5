from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None: ...


class Scheduler(ABC):
    @abstractmethod
    def now(self) -> float:
        """Monotonic time in milliseconds."""
        ...

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay_ms``; the handle cancels it."""
        ...


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    def now(self) -> float:
        return time.monotonic() * 1000

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(0.0, delay_ms) / 1000, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)
