import os
import sys
import time
import textwrap
from datetime import datetime, timedelta

from backend.storage import JsonFileTaskStorage
from planner.config import configure_logging
from planner.filters import FilterConfig
from planner.notifier import CallbackNotifier, format_message
from planner.reminders import ReminderScheduler
from planner.store import TaskStore

# ANSI Escape codes for pretty terminal colors
class Colors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'

DEMO_FILE = "/tmp/planner_demo/tasks.json"
PAUSE = float(os.environ.get("PLANNER_DEMO_PAUSE", 1))


class DemoClock:
    """Manually advanced clock so the demo can fast-forward through reminders."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def print_step(title, desc):
    print(f"\n{Colors.HEADER}{Colors.BOLD}===================================================={Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}► {title}{Colors.ENDC}")
    print(f"{Colors.HEADER}{Colors.BOLD}===================================================={Colors.ENDC}")
    print(f"{Colors.OKCYAN}{desc}{Colors.ENDC}\n")
    time.sleep(PAUSE)


def show_notification(kind, task, extra):
    color = Colors.FAIL if kind == "overdue" else Colors.WARNING
    print(f"  🔔 {color}[{kind.upper()}]{Colors.ENDC} {format_message(kind, task, extra)}")


def show_tasks(tasks):
    if not tasks:
        print("  (no tasks)")
    for t in tasks:
        when = t.date_time.strftime("%b %d %H:%M") if t.date_time else "unscheduled"
        done = f"{Colors.OKGREEN}✓{Colors.ENDC}" if t.completed else " "
        tags = f" #{' #'.join(t.tags)}" if t.tags else ""
        print(f"  [{done}] {Colors.BOLD}{t.priority.value:6s}{Colors.ENDC} {when:12s} {textwrap.shorten(t.title, width=40)}{tags}")


def prepare_demo_store(clock):
    os.makedirs(os.path.dirname(DEMO_FILE), exist_ok=True)
    if os.path.exists(DEMO_FILE):
        os.remove(DEMO_FILE)

    store = TaskStore(
        JsonFileTaskStorage(DEMO_FILE),
        clock=clock,
        scheduler=ReminderScheduler(poll_interval=timedelta(seconds=30)),
        notifier=CallbackNotifier(show_notification),
    )
    store.load()
    return store


def run_demo():
    configure_logging("WARNING")
    print(f"\n{Colors.OKGREEN}{Colors.BOLD}Starting Task Planner Demo{Colors.ENDC}\n")

    start = datetime.now().replace(second=0, microsecond=0)
    clock = DemoClock(start)
    store = prepare_demo_store(clock)

    # STEP 1
    print_step("STEP 1: Add tasks", "Tasks with priorities, tags, a reminder and a weekly recurrence.")
    store.add_task(title="Submit expense report", priority="Low", date_time=start - timedelta(hours=1),
                   category="Work", tags=["finance"])
    store.add_task(title="Stand-up meeting", priority="High", date_time=start + timedelta(minutes=20),
                   category="Work", reminder=10, tags=["team"])
    store.add_task(title="Water the plants", priority="Medium", date_time=start + timedelta(minutes=4),
                   category="Home")
    gym = store.add_task(title="Gym session", priority="Medium", date_time=start + timedelta(days=1),
                         category="Health", recurring={"type": "weekly", "interval": 1})
    show_tasks(store.visible())

    # STEP 2
    print_step("STEP 2: Filter and search", "Only today's Work tasks, then a search for 'plant'.")
    show_tasks(store.visible(FilterConfig(time_filter="today", category="Work")))
    print()
    show_tasks(store.visible(FilterConfig(search_query="plant")))

    # STEP 3
    print_step("STEP 3: Reminder ticks", "Fast-forwarding the clock 30 seconds at a time.")
    for _ in range(22):
        clock.advance(seconds=30)
        store.check_reminders()

    # STEP 4
    print_step("STEP 4: Complete a recurring task", "Completing the gym session schedules next week's one.")
    follow_up = store.toggle_complete(gym.id)
    if follow_up:
        print(f"  Next occurrence: {follow_up.date_time:%A %b %d %H:%M}")
    show_tasks(store.visible())

    print(f"\n{Colors.BOLD}Summary:{Colors.ENDC} {store.summary()}")
    print(f"\n{Colors.HEADER}{Colors.BOLD}=== DEMO COMPLETE ==={Colors.ENDC}\n")
    print(f"{Colors.OKCYAN}Tasks were saved to {DEMO_FILE}{Colors.ENDC}\n")


if __name__ == "__main__":
    try:
        run_demo()
    except KeyboardInterrupt:
        sys.exit(1)
