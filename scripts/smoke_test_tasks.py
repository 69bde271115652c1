import os
import sys
import tempfile
from datetime import datetime, timedelta

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from backend.storage import SqliteTaskStorage
from planner.config import configure_logging
from planner.filters import FilterConfig
from planner.notifier import LoggingNotifier
from planner.reminders import ReminderScheduler
from planner.store import TaskStore


def main():
    configure_logging()
    db_path = os.path.join(tempfile.mkdtemp(), "smoke.db")
    now = datetime.now().replace(second=0, microsecond=0)

    # 1) Store over a throwaway SQLite file
    store = TaskStore(
        SqliteTaskStorage(db_path=db_path),
        clock=lambda: now,
        scheduler=ReminderScheduler(poll_interval=timedelta(seconds=30)),
        notifier=LoggingNotifier(),
    )
    store.load()

    # 2) Add tasks
    store.add_task(title="Overdue call", date_time=now - timedelta(hours=1))
    store.add_task(title="Soon meeting", priority="High", date_time=now + timedelta(minutes=3))
    weekly = store.add_task(title="Weekly review", priority="Low", date_time=now + timedelta(days=2),
                            recurring={"type": "weekly", "interval": 1})
    print("tasks_written:", len(store.tasks()))

    # 3) Reminders already fired on add; a tick at the same instant is silent
    print("second_tick_notifications:", len(store.check_reminders(now)))

    # 4) Recurrence
    follow_up = store.toggle_complete(weekly.id)
    print("next_occurrence:", follow_up.date_time if follow_up else None)

    # 5) Reload from disk
    reloaded = TaskStore(SqliteTaskStorage(db_path=db_path))
    reloaded.load()
    print("tasks_reloaded:", len(reloaded.tasks()))
    print("visible_upcoming:", [t.title for t in reloaded.visible(FilterConfig(time_filter="upcoming"))])


if __name__ == "__main__":
    main()
