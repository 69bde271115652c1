"""
Reminder scheduling tests
Validates the tick rules:
  - overdue / reminder / soon fire once per epoch, guarded by their flags
  - the reminder catch window is at least one polling interval wide
  - completed and unscheduled tasks are never evaluated

Run: python test_reminders.py  (or pytest)
"""
from datetime import datetime, timedelta

from planner.reminders import ReminderScheduler, reset_notification_flags
from planner.task_schema import TaskRecord

NOW = datetime(2026, 3, 10, 12, 0)
POLL = timedelta(seconds=30)


def _kinds(notifications):
    return [n.kind for n in notifications]


def test_overdue_fires_once():
    """Scenario: task one hour in the past, not yet notified."""
    print("\n── Test: Overdue ──")

    task = TaskRecord(id="1", title="Late", date_time=NOW - timedelta(hours=1))
    scheduler = ReminderScheduler(poll_interval=POLL)

    first = scheduler.tick([task], NOW)
    assert _kinds(first) == ["overdue"]
    assert first[0].task is task
    assert task.notified_overdue is True
    print("  ✓ First tick emits one overdue event and sets the flag")

    second = scheduler.tick([task], NOW)
    assert second == []
    print("  ✓ Second tick at the same instant emits nothing")


def test_due_notifications_is_pure():
    task = TaskRecord(id="1", title="Late", date_time=NOW - timedelta(hours=1))
    scheduler = ReminderScheduler(poll_interval=POLL)

    assert _kinds(scheduler.due_notifications([task], NOW)) == ["overdue"]
    assert _kinds(scheduler.due_notifications([task], NOW)) == ["overdue"]
    assert task.notified_overdue is False
    print("  ✓ Decision pass leaves flags untouched")


def test_reminder_exactly_once_in_window():
    """Task at T with a 10 minute reminder, ticking every 30 seconds."""
    print("\n── Test: Reminder Window ──")

    T = datetime(2026, 3, 10, 10, 0)
    task = TaskRecord(id="1", title="Meeting", date_time=T, reminder=10)
    scheduler = ReminderScheduler(poll_interval=POLL)

    reminder_ticks = []
    tick_at = T - timedelta(minutes=15)
    while tick_at <= T + timedelta(minutes=5):
        for n in scheduler.tick([task], tick_at):
            if n.kind == "reminder":
                reminder_ticks.append(tick_at)
                assert n.minutes_before == 10
        tick_at += POLL

    assert reminder_ticks == [T - timedelta(minutes=10)]
    assert task.notified_reminder is True
    assert task.notified_soon is False
    print("  ✓ Exactly one reminder, emitted at T-10min")


def test_reminder_not_before_instant():
    T = datetime(2026, 3, 10, 10, 0)
    task = TaskRecord(id="1", title="Meeting", date_time=T, reminder=10)
    scheduler = ReminderScheduler(poll_interval=POLL)

    assert scheduler.tick([task], T - timedelta(minutes=10, seconds=1)) == []
    assert task.notified_reminder is False
    print("  ✓ Nothing one second before the reminder instant")


def test_catch_window_follows_poll_interval():
    print("\n── Test: Catch Window ──")

    T = datetime(2026, 3, 10, 10, 0)
    reminder_at = T - timedelta(minutes=10)

    # 30s polling: window is the one-minute minimum
    task = TaskRecord(id="1", title="Meeting", date_time=T, reminder=10)
    fast = ReminderScheduler(poll_interval=POLL)
    assert fast.catch_window == timedelta(minutes=1)
    assert fast.tick([task], reminder_at + timedelta(seconds=59))[0].kind == "reminder"

    task = TaskRecord(id="1", title="Meeting", date_time=T, reminder=10)
    assert fast.tick([task], reminder_at + timedelta(minutes=1)) == []
    print("  ✓ 30s polling catches within [r, r+1min)")

    # 2 minute polling: a tick 90s late still catches the reminder
    task = TaskRecord(id="1", title="Meeting", date_time=T, reminder=10)
    slow = ReminderScheduler(poll_interval=timedelta(minutes=2))
    assert slow.catch_window == timedelta(minutes=2)
    assert _kinds(slow.tick([task], reminder_at + timedelta(seconds=90))) == ["reminder"]
    print("  ✓ Window widens to the polling interval")


def test_soon_default_notification():
    print("\n── Test: Soon ──")

    scheduler = ReminderScheduler(poll_interval=POLL)

    task = TaskRecord(id="1", title="Call", date_time=NOW + timedelta(minutes=6))
    assert scheduler.tick([task], NOW) == []

    assert _kinds(scheduler.tick([task], NOW + timedelta(minutes=1))) == ["soon"]
    assert task.notified_soon is True
    assert scheduler.tick([task], NOW + timedelta(minutes=2)) == []
    print("  ✓ Fires once when within five minutes")

    edge = TaskRecord(id="2", title="Edge", date_time=NOW + timedelta(minutes=5))
    assert _kinds(scheduler.tick([edge], NOW)) == ["soon"]
    print("  ✓ Exactly five minutes ahead counts as soon")

    wide = ReminderScheduler(poll_interval=POLL, soon_window=timedelta(minutes=15))
    later = TaskRecord(id="3", title="Later", date_time=NOW + timedelta(minutes=12))
    emitted = wide.tick([later], NOW)
    assert _kinds(emitted) == ["soon"]
    assert emitted[0].within_minutes == 15
    print("  ✓ Configured soon window travels with the notification")


def test_soon_skipped_when_reminder_set():
    scheduler = ReminderScheduler(poll_interval=POLL)
    task = TaskRecord(id="1", title="Call", date_time=NOW + timedelta(minutes=3), reminder=30)
    assert scheduler.tick([task], NOW) == []
    assert task.notified_soon is False
    print("  ✓ Explicit reminder replaces the soon rule")


def test_overdue_implies_not_soon():
    scheduler = ReminderScheduler(poll_interval=POLL)
    task = TaskRecord(id="1", title="Now", date_time=NOW)
    assert _kinds(scheduler.tick([task], NOW)) == ["overdue"]
    assert task.notified_soon is False
    print("  ✓ At the scheduled instant only overdue fires")


def test_all_rules_fire_across_ticks():
    print("\n── Test: Rule Sequence ──")

    T = datetime(2026, 3, 10, 10, 0)
    scheduler = ReminderScheduler(poll_interval=POLL)
    with_reminder = TaskRecord(id="1", title="Reminded", date_time=T, reminder=10)
    without = TaskRecord(id="2", title="Default", date_time=T)

    assert _kinds(scheduler.tick([with_reminder, without], T - timedelta(minutes=10))) == ["reminder"]
    assert _kinds(scheduler.tick([with_reminder, without], T - timedelta(minutes=4))) == ["soon"]
    overdue = scheduler.tick([with_reminder, without], T + timedelta(minutes=1))
    assert _kinds(overdue) == ["overdue", "overdue"]
    assert [n.task.id for n in overdue] == ["1", "2"]
    print("  ✓ Reminder, soon then overdue; emission follows task order")


def test_completed_and_unscheduled_skipped():
    scheduler = ReminderScheduler(poll_interval=POLL)
    tasks = [
        TaskRecord(id="1", title="Done", date_time=NOW - timedelta(hours=1), completed=True),
        TaskRecord(id="2", title="Broken", date_time="garbage"),
        TaskRecord(id="3", title="Nothing", reminder=5),
    ]
    assert scheduler.tick(tasks, NOW) == []
    assert not any(t.notified_overdue for t in tasks)
    print("  ✓ Completed and unscheduled tasks are not evaluated")


def test_flag_reset_starts_new_epoch():
    scheduler = ReminderScheduler(poll_interval=POLL)
    task = TaskRecord(id="1", title="Late", date_time=NOW - timedelta(hours=1))
    scheduler.tick([task], NOW)

    reset_notification_flags(task)
    assert _kinds(scheduler.tick([task], NOW)) == ["overdue"]
    print("  ✓ Resetting flags re-arms the notification")


def main():
    print("=" * 60)
    print("  REMINDER SCHEDULER — TESTS")
    print("=" * 60)

    test_overdue_fires_once()
    test_due_notifications_is_pure()
    test_reminder_exactly_once_in_window()
    test_reminder_not_before_instant()
    test_catch_window_follows_poll_interval()
    test_soon_default_notification()
    test_soon_skipped_when_reminder_set()
    test_overdue_implies_not_soon()
    test_all_rules_fire_across_ticks()
    test_completed_and_unscheduled_skipped()
    test_flag_reset_starts_new_epoch()

    print("\n" + "=" * 60)
    print("  ✓ ALL TESTS PASSED")
    print("=" * 60)


if __name__ == "__main__":
    main()
