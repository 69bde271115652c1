from typing import List, Dict, Any, Optional, Literal, Iterable
from datetime import datetime
from pydantic import BaseModel

from planner.date_utils import same_calendar_day
from planner.task_schema import TaskRecord, Priority, PRIORITY_RANK


TimeFilter = Literal["all", "today", "upcoming", "overdue", "completed"]


class FilterConfig(BaseModel):
    """Filter/search state of the task list view."""
    time_filter: TimeFilter = "all"
    category: str = "all"
    priority: str = "all"
    search_query: str = ""


class TaskFilterEngine:
    def __init__(self, clock=datetime.now):
        """
        Initialize the filter engine.

        Args:
            clock: Zero-argument callable returning the current local time.
                   Only used when `visible_tasks` is called without `now`.
        """
        self.clock = clock

    # -----------------------------
    # Visible list
    # -----------------------------

    def visible_tasks(
        self,
        tasks: Iterable[TaskRecord],
        config: Optional[FilterConfig] = None,
        now: Optional[datetime] = None
    ) -> List[TaskRecord]:
        """
        Produces the ordered visible subset of `tasks`.

        Time, category, priority and search filters compose by AND. The result
        is sorted by priority rank (High first) then by ascending date_time;
        ties keep their input order. The input collection is never mutated.
        """
        cfg = config or FilterConfig()
        now_dt = now or self.clock()

        out = [t for t in tasks if self._matches_time(t, cfg.time_filter, now_dt)]

        if cfg.category != "all":
            out = [t for t in out if t.category == cfg.category]

        if cfg.priority != "all":
            out = [t for t in out if t.priority.value == cfg.priority]

        # Whitespace only decides emptiness; the query itself is matched as typed
        if cfg.search_query.strip():
            query = cfg.search_query.lower()
            out = [t for t in out if self._matches_query(t, query)]

        return sort_tasks(out)

    # -----------------------------
    # Summary (stats bar)
    # -----------------------------

    def summarize_tasks(self, tasks: Iterable[TaskRecord], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Counts shown above the task list.
        """
        now_dt = now or self.clock()
        items = list(tasks)

        total = len(items)
        completed = sum(1 for t in items if t.completed)
        high_pending = sum(1 for t in items if t.priority == Priority.HIGH and not t.completed)
        overdue = sum(1 for t in items if self._matches_time(t, "overdue", now_dt))

        return {
            "total_tasks": total,
            "completed": completed,
            "pending": total - completed,
            "high_priority_pending": high_pending,
            "overdue": overdue,
            "completion_rate": round(completed / total, 4) if total else 0.0,
        }

    # -----------------------------
    # Internal helpers
    # -----------------------------

    def _matches_time(self, task: TaskRecord, time_filter: str, now: datetime) -> bool:
        if time_filter == "all":
            return True
        if time_filter == "completed":
            return task.completed

        # Remaining filters are date based; unscheduled tasks never match
        if task.date_time is None:
            return False
        if time_filter == "today":
            return same_calendar_day(task.date_time, now)
        if time_filter == "upcoming":
            return task.date_time > now and not task.completed
        if time_filter == "overdue":
            return task.date_time < now and not task.completed
        return False

    def _matches_query(self, task: TaskRecord, query: str) -> bool:
        if query in task.title.lower():
            return True
        if task.description and query in task.description.lower():
            return True
        return any(query in tag.lower() for tag in task.tags or [])


def _sort_key(task: TaskRecord):
    # Unscheduled tasks go after scheduled ones of the same rank
    return (
        PRIORITY_RANK.get(task.priority, 1),
        task.date_time is None,
        task.date_time or datetime.min,
    )


def sort_tasks(tasks: Iterable[TaskRecord]) -> List[TaskRecord]:
    return sorted(tasks, key=_sort_key)


def visible_tasks(
    tasks: Iterable[TaskRecord],
    config: Optional[FilterConfig] = None,
    now: Optional[datetime] = None
) -> List[TaskRecord]:
    return TaskFilterEngine().visible_tasks(tasks, config, now)


def list_categories(tasks: Iterable[TaskRecord]) -> List[str]:
    """Distinct categories in first-seen order."""
    seen: List[str] = []
    for t in tasks:
        if t.category not in seen:
            seen.append(t.category)
    return seen
