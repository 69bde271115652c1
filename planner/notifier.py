import logging
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from planner.reminders import Notification
from planner.task_schema import TaskRecord

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, kind: str, task: TaskRecord, extra: Optional[Dict[str, Any]] = None) -> None:
        ...


def format_message(kind: str, task: TaskRecord, extra: Optional[Dict[str, Any]] = None) -> str:
    """Human readable text for a notification."""
    extra = extra or {}
    if kind == "overdue":
        return f'Task "{task.title}" is overdue!'
    if kind == "reminder":
        minutes = extra.get("minutes_before", task.reminder)
        unit = "minute" if minutes == 1 else "minutes"
        return f'Reminder: "{task.title}" starts in {minutes} {unit}.'
    if kind == "soon":
        within = extra.get("within_minutes")
        if within is None:
            return f'"{task.title}" starts soon.'
        unit = "minute" if within == 1 else "minutes"
        return f'"{task.title}" starts within {within} {unit}.'
    return f'"{task.title}": {kind}'


class LoggingNotifier:
    """Writes every notification to the log."""

    def __init__(self, name: str = "planner.notifications"):
        self.logger = logging.getLogger(name)

    def notify(self, kind: str, task: TaskRecord, extra: Optional[Dict[str, Any]] = None) -> None:
        level = logging.WARNING if kind == "overdue" else logging.INFO
        self.logger.log(level, "[Notify] %s", format_message(kind, task, extra))


class CallbackNotifier:
    """Adapts a plain callable `fn(kind, task, extra)` to the Notifier interface."""

    def __init__(self, fn: Callable[[str, TaskRecord, Optional[Dict[str, Any]]], None]):
        self.fn = fn

    def notify(self, kind: str, task: TaskRecord, extra: Optional[Dict[str, Any]] = None) -> None:
        self.fn(kind, task, extra)


def dispatch(notifier: Optional[Notifier], notifications: Iterable[Notification]) -> int:
    """
    Hands notifications to the notifier, fire-and-forget.
    A failing notifier is logged and never stops the remaining deliveries.
    Returns the number delivered without error.
    """
    if notifier is None:
        return 0

    delivered = 0
    for n in notifications:
        extra = None
        if n.minutes_before is not None:
            extra = {"minutes_before": n.minutes_before}
        elif n.within_minutes is not None:
            extra = {"within_minutes": n.within_minutes}
        try:
            notifier.notify(n.kind, n.task, extra)
            delivered += 1
        except Exception as e:
            logger.error("[Notify] Delivery of %s for task %s failed: %s", n.kind, n.task.id, e)
    return delivered
