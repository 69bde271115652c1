import os
import sys
import argparse
import json

# Add parent directory to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from backend.storage import SqliteTaskStorage
from planner.db import delete_value, list_keys
from planner.filters import FilterConfig, visible_tasks, TaskFilterEngine


def inspect_key(key, time_filter="all", limit=10):
    tasks = SqliteTaskStorage(key=key).load()
    if not tasks:
        print(f"   (No tasks stored under '{key}')")
        return

    shown = visible_tasks(tasks, FilterConfig(time_filter=time_filter))
    print(f"\n🔍 Inspecting key: {key} ({len(shown)} of {len(tasks)} tasks, filter={time_filter}, limit {limit})\n")
    for i, task in enumerate(shown[:limit]):
        print(f"--- Task {i+1} ---")
        print(json.dumps(task.to_storage_dict(), indent=2))
        print("")

    print("📊 Summary:")
    print(json.dumps(TaskFilterEngine().summarize_tasks(tasks), indent=2))


def main():
    parser = argparse.ArgumentParser(description="Inspect stored task lists")
    parser.add_argument("key", nargs="?", help="Storage key to inspect")
    parser.add_argument("--list", action="store_true", help="List all keys")
    parser.add_argument("--filter", default="all",
                        choices=["all", "today", "upcoming", "overdue", "completed"],
                        help="Time filter applied before printing")
    parser.add_argument("--limit", type=int, default=5, help="Number of tasks to show")
    parser.add_argument("--clear", action="store_true", help="Delete the stored task list under <key>")

    args = parser.parse_args()

    if args.clear:
        if not args.key:
            parser.error("--clear needs a key")
        delete_value(args.key)
        print(f"🗑️  Cleared key: {args.key}")
        return

    keys = list_keys()

    if args.list or not args.key:
        print("📂 Stored Keys:")
        for row in keys:
            print(f" - {row['key']} ({row['size']} bytes, updated {row['updated_at']})")
        if not args.list:
            print("\nUsage: python scripts/inspect_db.py <key>")

    if args.key:
        inspect_key(args.key, args.filter, args.limit)


if __name__ == "__main__":
    main()
