"""
store.py

Owner of the in-memory task collection. Every mutation (interactive edits and
the reminder tick alike) goes through this class and runs under one lock, so
read-modify-write of task fields and notification flags never interleave.
After each mutation the whole collection is handed to the storage
collaborator; a failed save is logged and the in-memory state stays
authoritative.
"""

import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from planner.filters import FilterConfig, TaskFilterEngine, list_categories
from planner.notifier import Notifier, dispatch
from planner.reminders import Notification, ReminderScheduler, reset_notification_flags, spawn_next_occurrence
from planner.task_schema import TaskRecord

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class TaskStore:
    def __init__(
        self,
        storage,
        clock: Callable[[], datetime] = datetime.now,
        scheduler: Optional[ReminderScheduler] = None,
        notifier: Optional[Notifier] = None,
        id_factory: Callable[[], str] = _new_id,
    ):
        self.storage = storage
        self.clock = clock
        self.scheduler = scheduler or ReminderScheduler()
        self.notifier = notifier
        self.id_factory = id_factory
        self.filter_engine = TaskFilterEngine(clock=clock)

        self._lock = threading.RLock()
        self._tasks: List[TaskRecord] = []

    # ---------- loading / persistence ----------
    def load(self) -> int:
        try:
            loaded = self.storage.load()
        except Exception as e:
            logger.error("[Store] Loading tasks failed, starting empty: %s", e)
            loaded = []
        with self._lock:
            self._tasks = list(loaded)
        logger.info("[Store] Loaded %d task(s)", len(loaded))
        return len(loaded)

    def _persist(self) -> bool:
        try:
            ok = self.storage.save(self._tasks)
        except Exception as e:
            logger.error("[Store] Saving tasks failed: %s", e)
            return False
        if not ok:
            logger.warning("[Store] Storage rejected save of %d task(s)", len(self._tasks))
        return bool(ok)

    # ---------- queries ----------
    def tasks(self) -> List[TaskRecord]:
        """Snapshot of the collection; changes to it do not affect the store."""
        with self._lock:
            return [t.model_copy(deep=True) for t in self._tasks]

    def get(self, task_id: str) -> Optional[TaskRecord]:
        with self._lock:
            task = self._find(task_id)
            return task.model_copy(deep=True) if task else None

    def visible(self, config: Optional[FilterConfig] = None) -> List[TaskRecord]:
        return self.filter_engine.visible_tasks(self.tasks(), config, self.clock())

    def summary(self) -> Dict[str, Any]:
        return self.filter_engine.summarize_tasks(self.tasks(), self.clock())

    def categories(self) -> List[str]:
        return list_categories(self.tasks())

    # ---------- mutations ----------
    def add_task(self, task: Optional[TaskRecord] = None, **fields: Any) -> TaskRecord:
        """
        Adds a task. Accepts a TaskRecord, keyword fields, or both (keywords
        win). A fresh id is always assigned. Raises pydantic's ValidationError
        (a ValueError) for an invalid task such as an empty title.
        """
        data: Dict[str, Any] = task.model_dump() if task is not None else {}
        data.update(fields)
        data["id"] = self.id_factory()
        if not data.get("created_at"):
            data["created_at"] = self.clock()
        record = TaskRecord.model_validate(data)

        with self._lock:
            self._tasks.append(record)
            self._persist()
            created = record.model_copy(deep=True)

        logger.info("[Store] Added task %s (%s)", record.id, record.title)
        self.check_reminders()
        return created

    def update_task(self, task_id: str, **changes: Any) -> Optional[TaskRecord]:
        """
        Merges `changes` (snake_case field names) into the task. Editing
        date_time or reminder starts a new notification epoch.
        """
        changes.pop("id", None)
        with self._lock:
            current = self._find(task_id)
            if current is None:
                logger.debug("[Store] Update of unknown task %s ignored", task_id)
                return None

            data = current.model_dump()
            data.update(changes)
            updated = TaskRecord.model_validate(data)

            if updated.date_time != current.date_time or updated.reminder != current.reminder:
                reset_notification_flags(updated)

            self._tasks[self._tasks.index(current)] = updated
            self._persist()
            result = updated.model_copy(deep=True)

        self.check_reminders()
        return result

    def delete_task(self, task_id: str) -> bool:
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("[Store] Delete of unknown task %s ignored", task_id)
                return False
            self._tasks.remove(task)
            self._persist()
        logger.info("[Store] Deleted task %s", task_id)
        return True

    def toggle_complete(self, task_id: str) -> Optional[TaskRecord]:
        """
        Flips `completed`. When a recurring task becomes completed, the next
        task of its series is appended and returned; otherwise returns None.
        Re-completing a task whose next occurrence already exists (same
        title, rule and date_time) does not append a second copy.
        """
        with self._lock:
            task = self._find(task_id)
            if task is None:
                logger.debug("[Store] Toggle of unknown task %s ignored", task_id)
                return None

            task.completed = not task.completed
            follow_up = None
            if task.completed and task.recurring is not None:
                follow_up = spawn_next_occurrence(task, self.id_factory())
                if follow_up is not None and self._has_occurrence(follow_up):
                    logger.info("[Store] Next occurrence of task %s already exists", task.id)
                    follow_up = None
                if follow_up is not None:
                    follow_up.created_at = self.clock()
                    self._tasks.append(follow_up)
                    logger.info(
                        "[Store] Recurring task %s continues as %s on %s",
                        task.id, follow_up.id, follow_up.date_time.isoformat(timespec="minutes"),
                    )
            self._persist()
            result = follow_up.model_copy(deep=True) if follow_up else None

        if result is not None:
            self.check_reminders()
        return result

    def toggle_subtask(self, task_id: str, subtask_id: str) -> Optional[bool]:
        """Flips a subtask; returns its new state or None when not found."""
        with self._lock:
            task = self._find(task_id)
            if task is None:
                return None
            for sub in task.subtasks:
                if sub.id == subtask_id:
                    sub.completed = not sub.completed
                    self._persist()
                    return sub.completed
        return None

    # ---------- reminders ----------
    def check_reminders(self, now: Optional[datetime] = None) -> List[Notification]:
        """
        One reminder tick over the live collection. Flags are set and saved
        under the lock; delivery to the notifier happens after releasing it.
        """
        with self._lock:
            emitted = self.scheduler.tick(self._tasks, now or self.clock())
            if emitted:
                self._persist()
            notifications = [
                replace(n, task=n.task.model_copy(deep=True))
                for n in emitted
            ]

        dispatch(self.notifier, notifications)
        return notifications

    # ---------- internal ----------
    def _has_occurrence(self, candidate: TaskRecord) -> bool:
        return any(
            t.title == candidate.title
            and t.date_time == candidate.date_time
            and t.recurring == candidate.recurring
            for t in self._tasks
        )

    def _find(self, task_id: str) -> Optional[TaskRecord]:
        task_id = str(task_id)
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None
