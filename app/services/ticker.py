"""
Timers that drive DeadlineScheduler.tick.

IntervalTicker runs on a daemon thread in production. ManualTicker is the
drop-in for tests: time only moves when the test advances it.
"""
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any, Protocol

from app.core.timeutils import utcnow

logger = logging.getLogger(__name__)

TickCallback = Callable[[datetime, threading.Event], Any]


class Ticker(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def fire(self) -> Any: ...


class IntervalTicker:
    """
    Calls ``callback(now, cancel_event)`` every ``interval``.

    The wait starts after the previous tick returns, so a slow tick defers the
    next one instead of overlapping it. ``fire()`` takes the same lock, which
    keeps a manual trigger from running alongside a timed tick.
    """

    def __init__(
        self,
        interval: timedelta,
        callback: TickCallback,
        clock: Callable[[], datetime] = utcnow,
        name: str = "deadline-ticker",
    ):
        self.interval = interval
        self.callback = callback
        self.clock = clock
        self.name = name
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("%s started, every %s", self.name, self.interval)

    def _run(self) -> None:
        while not self._stopped.wait(self.interval.total_seconds()):
            try:
                self.fire()
            except Exception:
                # keep the timer alive; the next interval retries
                logger.exception("%s: tick failed", self.name)

    def fire(self) -> Any:
        with self._lock:
            return self.callback(self.clock(), self._stopped)

    def stop(self, timeout: float | None = None) -> None:
        """Signal cancellation to a running tick and wait for the thread."""
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("%s stopped", self.name)


class ManualTicker:
    def __init__(self, callback: TickCallback, now: datetime):
        self.callback = callback
        self.now = now
        self.cancel = threading.Event()
        self.results: list[Any] = []

    def start(self) -> None:
        self.cancel.clear()

    def stop(self) -> None:
        self.cancel.set()

    def fire(self) -> Any:
        result = self.callback(self.now, self.cancel)
        self.results.append(result)
        return result

    def advance(self, delta: timedelta) -> Any:
        """Move the clock forward and tick once."""
        self.now = self.now + delta
        return self.fire()
