import os
import sys
from datetime import datetime, timedelta

# Add parent directory to path to import planner modules
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from backend.storage import SqliteTaskStorage
from planner.db import init_db
from planner.store import TaskStore


def sample_tasks(now: datetime):
    today = now.replace(second=0, microsecond=0)
    return [
        {"title": "Quarterly planning", "priority": "High", "category": "Work",
         "date_time": today + timedelta(hours=2), "reminder": 15, "tags": ["planning", "q1"],
         "description": "Draft goals for the next quarter"},
        {"title": "Pay rent", "priority": "High", "category": "Personal",
         "date_time": today - timedelta(hours=3), "tags": ["finance"]},
        {"title": "Dentist appointment", "priority": "Medium", "category": "Health",
         "date_time": today + timedelta(days=3), "reminder": 60},
        {"title": "Water the plants", "priority": "Low", "category": "Home",
         "date_time": today + timedelta(days=1),
         "recurring": {"type": "daily", "interval": 2}},
        {"title": "Team retro", "priority": "Medium", "category": "Work",
         "date_time": today + timedelta(days=7), "recurring": {"type": "weekly", "interval": 2,
                                                               "end_date": today + timedelta(days=90)},
         "subtasks": [{"id": "1", "text": "Collect feedback"}, {"id": "2", "text": "Book room"}]},
    ]


def run_seed():
    print("🌱 Seeding task database...")
    init_db()

    store = TaskStore(SqliteTaskStorage())
    store.load()
    for task in store.tasks():
        store.delete_task(task.id)

    for fields in sample_tasks(datetime.now()):
        store.add_task(**fields)

    print(f"✅ Seed Complete! {len(store.tasks())} tasks stored.")


if __name__ == "__main__":
    run_seed()
