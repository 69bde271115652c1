import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Literal, Optional

from planner.date_utils import add_days, add_months
from planner.task_schema import TaskRecord, RecurrenceType

logger = logging.getLogger(__name__)

NotificationKind = Literal["overdue", "reminder", "soon"]

DEFAULT_SOON_WINDOW = timedelta(minutes=5)
MIN_CATCH_WINDOW = timedelta(minutes=1)


@dataclass
class Notification:
    kind: NotificationKind
    task: TaskRecord
    minutes_before: Optional[int] = None  # set for 'reminder' only
    within_minutes: Optional[int] = None  # set for 'soon' only


class ReminderScheduler:
    def __init__(
        self,
        poll_interval: timedelta = timedelta(seconds=30),
        soon_window: timedelta = DEFAULT_SOON_WINDOW
    ):
        """
        Initialize the reminder scheduler.

        Args:
            poll_interval: Period of the external ticker. The reminder catch
                           window is never narrower than this, so a reminder
                           instant cannot fall between two ticks unseen.
            soon_window: How far ahead a task without an explicit reminder
                         triggers the default 'soon' notification.
        """
        self.poll_interval = poll_interval
        self.soon_window = soon_window
        self.catch_window = max(MIN_CATCH_WINDOW, poll_interval)
        self.soon_minutes = int(soon_window.total_seconds() // 60)

    # -----------------------------
    # Decision
    # -----------------------------

    def due_notifications(self, tasks: Iterable[TaskRecord], now: datetime) -> List[Notification]:
        """
        Decides which notifications are due at `now` without touching any task.

        Each rule is guarded by its one-shot flag:
          - overdue:  now >= date_time
          - reminder: date_time - reminder <= now < that + catch_window
          - soon:     no reminder set, 0 <= date_time - now <= soon_window
        Completed and unscheduled tasks are skipped. Output follows input order.
        """
        out: List[Notification] = []

        for task in tasks:
            if task.completed:
                continue
            if task.date_time is None:
                logger.debug("[Reminders] Skipping unscheduled task %s", task.id)
                continue

            is_overdue = now >= task.date_time

            if is_overdue and not task.notified_overdue:
                out.append(Notification(kind="overdue", task=task))

            if task.reminder is not None:
                if not task.notified_reminder:
                    reminder_at = task.date_time - timedelta(minutes=task.reminder)
                    if reminder_at <= now < reminder_at + self.catch_window:
                        out.append(Notification(kind="reminder", task=task, minutes_before=task.reminder))
            elif not task.notified_soon and not is_overdue:
                if task.date_time - now <= self.soon_window:
                    out.append(Notification(kind="soon", task=task, within_minutes=self.soon_minutes))

        return out

    def tick(self, tasks: Iterable[TaskRecord], now: datetime) -> List[Notification]:
        """
        One evaluation pass: decide, then set the flag of every emitted kind
        on the task objects so the same notification is not emitted again.
        """
        notifications = self.due_notifications(tasks, now)
        for n in notifications:
            mark_notified(n)

        if notifications:
            counts = {}
            for n in notifications:
                counts[n.kind] = counts.get(n.kind, 0) + 1
            summary = ", ".join(f"{c} {k}" for k, c in counts.items())
            logger.info("[Reminders] Tick at %s emitted %s", now.isoformat(timespec="seconds"), summary)

        return notifications


def mark_notified(notification: Notification) -> None:
    task = notification.task
    if notification.kind == "overdue":
        task.notified_overdue = True
    elif notification.kind == "reminder":
        task.notified_reminder = True
    elif notification.kind == "soon":
        task.notified_soon = True


def reset_notification_flags(task: TaskRecord) -> None:
    """Start a new notification epoch after date_time or reminder changed."""
    task.notified_reminder = False
    task.notified_soon = False
    task.notified_overdue = False


# -----------------------------
# Recurrence
# -----------------------------

def next_occurrence(task: TaskRecord) -> Optional[datetime]:
    """
    The date_time of the next task in the recurrence series, or None when the
    task is not recurring, unscheduled, or the series has ended.
    """
    rule = task.recurring
    if rule is None or task.date_time is None:
        return None

    if rule.type in (RecurrenceType.DAILY, RecurrenceType.CUSTOM):
        next_dt = add_days(task.date_time, rule.interval)
    elif rule.type == RecurrenceType.WEEKLY:
        next_dt = add_days(task.date_time, 7 * rule.interval)
    elif rule.type == RecurrenceType.MONTHLY:
        next_dt = add_months(task.date_time, rule.interval)
    else:
        return None

    if rule.end_date is not None and next_dt > rule.end_date:
        return None
    return next_dt


def spawn_next_occurrence(task: TaskRecord, new_id: str) -> Optional[TaskRecord]:
    """
    Builds the follow-up task of a completed recurring task: fresh id, next
    date_time, not completed, all notification flags cleared. Everything else,
    `recurring` included, is copied so the series continues.
    """
    next_dt = next_occurrence(task)
    if next_dt is None:
        if task.recurring is not None:
            logger.info("[Reminders] Recurrence series of task %s ended", task.id)
        return None

    follow_up = task.model_copy(deep=True)
    follow_up.id = new_id
    follow_up.date_time = next_dt
    follow_up.completed = False
    reset_notification_flags(follow_up)
    return follow_up
