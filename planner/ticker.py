import logging
import threading
from typing import Callable, Optional

from planner.config import config

logger = logging.getLogger(__name__)


class PeriodicTimer:
    """
    Calls `callback` every `period_seconds` on a daemon thread until cancelled.
    An exception in the callback is logged and the timer keeps running.
    """

    def __init__(self, period_seconds: float, callback: Callable[[], None], name: str = "planner-timer"):
        if period_seconds <= 0:
            raise ValueError("period_seconds must be > 0")
        self.period_seconds = period_seconds
        self.callback = callback
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "PeriodicTimer":
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._stopped.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=max(self.period_seconds, 1.0))

    @property
    def cancelled(self) -> bool:
        return self._stopped.is_set()

    def _run(self) -> None:
        while not self._stopped.wait(self.period_seconds):
            try:
                self.callback()
            except Exception as e:
                logger.error("[Timer] Callback failed: %s", e)


def schedule(period_seconds: float, callback: Callable[[], None]) -> PeriodicTimer:
    """Start a periodic timer; the returned handle's `cancel()` stops it."""
    return PeriodicTimer(period_seconds, callback).start()


class ReminderTicker:
    """Drives `TaskStore.check_reminders` at startup and then periodically."""

    def __init__(self, store, poll_interval: Optional[float] = None, scheduler_fn=schedule):
        self.store = store
        self.poll_interval = poll_interval or config["poll_interval"]
        self._schedule = scheduler_fn
        self._handle = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self.store.check_reminders()
        self._handle = self._schedule(self.poll_interval, self.store.check_reminders)
        logger.info("[Ticker] Checking reminders every %ss", self.poll_interval)

    def stop(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        logger.info("[Ticker] Stopped")

    def __enter__(self) -> "ReminderTicker":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
