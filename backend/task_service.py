import logging
import time
from datetime import timedelta
from typing import Optional

from backend.storage import SqliteTaskStorage, TaskStorage
from planner.config import config
from planner.notifier import LoggingNotifier, Notifier
from planner.reminders import ReminderScheduler
from planner.store import TaskStore
from planner.ticker import ReminderTicker

logger = logging.getLogger(__name__)


class TaskService:
    """Wires storage, scheduler, notifier and ticker around one TaskStore."""

    def __init__(
        self,
        storage: Optional[TaskStorage] = None,
        notifier: Optional[Notifier] = None,
        poll_interval: Optional[int] = None,
        clock=None,
    ):
        self.poll_interval = poll_interval or config["poll_interval"]
        scheduler = ReminderScheduler(
            poll_interval=timedelta(seconds=self.poll_interval),
            soon_window=timedelta(minutes=config["soon_minutes"]),
        )

        store_kwargs = {"clock": clock} if clock else {}
        self.store = TaskStore(
            storage or SqliteTaskStorage(),
            scheduler=scheduler,
            notifier=notifier or LoggingNotifier(),
            **store_kwargs,
        )
        self.ticker = ReminderTicker(self.store, poll_interval=self.poll_interval)

    def start(self) -> TaskStore:
        # 1. Load persisted tasks
        self.store.load()

        # 2. Immediate reminder check, then periodic ticks
        self.ticker.start()
        return self.store

    def stop(self) -> None:
        self.ticker.stop()

    def run_forever(self) -> None:
        self.start()
        try:
            while True:
                time.sleep(self.poll_interval)
        except KeyboardInterrupt:
            logger.info("[Service] Interrupted")
        finally:
            self.stop()


if __name__ == "__main__":
    from planner.config import configure_logging

    configure_logging()
    TaskService().run_forever()
