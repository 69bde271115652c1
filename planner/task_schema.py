# planner/task_schema.py

from __future__ import annotations
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from planner.date_utils import parse_timestamp

logger = logging.getLogger(__name__)


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class _StoredModel(BaseModel):
    # Persisted records keep the camelCase keys of the browser-era format.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Recurrence(_StoredModel):
    type: RecurrenceType
    interval: int = Field(default=1, ge=1, description="Step size in units of `type`")
    end_date: Optional[datetime] = Field(default=None, description="Series ends after this instant")

    @field_validator('interval', mode='before')
    @classmethod
    def coerce_interval(cls, v):
        try:
            value = int(v)
        except (TypeError, ValueError):
            logger.warning("[Schema] Unreadable recurrence interval %r, using 1", v)
            return 1
        if value < 1:
            logger.warning("[Schema] Non-positive recurrence interval %r, using 1", v)
            return 1
        return value

    @field_validator('end_date', mode='before')
    @classmethod
    def parse_end_date(cls, v):
        if v in (None, ""):
            return None
        parsed = parse_timestamp(v)
        if parsed is None:
            logger.warning("[Schema] Unreadable recurrence end date %r ignored", v)
        return parsed


class Attachment(_StoredModel):
    name: str = ""
    type: str = "application/octet-stream"
    size: int = 0
    data: str = ""

    @field_validator('name', 'type', 'data', mode='before')
    @classmethod
    def coerce_text(cls, v, info):
        if v is None:
            return cls.model_fields[info.field_name].default
        return str(v)

    @field_validator('size', mode='before')
    @classmethod
    def coerce_size(cls, v):
        try:
            return max(int(v), 0)
        except (TypeError, ValueError):
            return 0


class Subtask(_StoredModel):
    id: str = ""
    text: str = ""
    completed: bool = False

    @field_validator('id', 'text', mode='before')
    @classmethod
    def coerce_text(cls, v):
        return "" if v is None else str(v)

    @field_validator('completed', mode='before')
    @classmethod
    def coerce_flag(cls, v):
        return bool(v)


class TaskRecord(_StoredModel):
    id: str = Field(..., description="Opaque unique task ID")
    title: str = Field(..., description="Human readable task title")
    description: Optional[str] = None

    date_time: Optional[datetime] = Field(
        default=None,
        description="Scheduled instant; None when missing or unreadable",
    )
    category: str = "Other"
    priority: Priority = Priority.MEDIUM
    reminder: Optional[int] = Field(default=None, description="Minutes before date_time")
    tags: List[str] = Field(default_factory=list)

    completed: bool = False
    notified_reminder: bool = False
    notified_soon: bool = False
    notified_overdue: bool = False

    recurring: Optional[Recurrence] = None
    attachments: List[Attachment] = Field(default_factory=list)
    subtasks: List[Subtask] = Field(default_factory=list)

    created_at: Optional[datetime] = None

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        # Legacy records used millisecond timestamps as ids
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v

    @field_validator('title')
    @classmethod
    def require_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v

    @field_validator('date_time', 'created_at', mode='before')
    @classmethod
    def parse_instant(cls, v, info):
        if v in (None, ""):
            return None
        parsed = parse_timestamp(v)
        if parsed is None:
            logger.warning("[Schema] Unreadable %s %r, task left unscheduled", info.field_name, v)
        return parsed

    @field_validator('category', mode='before')
    @classmethod
    def default_category(cls, v):
        return v if v else "Other"

    @field_validator('priority', mode='before')
    @classmethod
    def coerce_priority(cls, v):
        if isinstance(v, Priority):
            return v
        if isinstance(v, str):
            for p in Priority:
                if p.value.lower() == v.strip().lower():
                    return p
        if v not in (None, ""):
            logger.warning("[Schema] Unknown priority %r, using Medium", v)
        return Priority.MEDIUM

    @field_validator('reminder', mode='before')
    @classmethod
    def coerce_reminder(cls, v):
        if v is None or isinstance(v, bool):
            return None
        if isinstance(v, str) and v.strip().lower() in ("", "none"):
            return None
        try:
            minutes = int(v)
        except (TypeError, ValueError):
            logger.warning("[Schema] Unreadable reminder %r, reminder disabled", v)
            return None
        if minutes < 0:
            logger.warning("[Schema] Negative reminder %r, reminder disabled", v)
            return None
        return minutes

    @field_validator('tags', mode='before')
    @classmethod
    def coerce_tags(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return parse_tags(v)
        return [str(t).strip() for t in v if str(t).strip()]

    @field_validator('recurring', mode='before')
    @classmethod
    def coerce_recurring(cls, v):
        if not v:
            return None
        if isinstance(v, dict):
            kind = v.get("type")
            known = {t.value for t in RecurrenceType}
            if isinstance(kind, RecurrenceType):
                return v
            if not isinstance(kind, str) or kind.lower() not in known:
                logger.warning("[Schema] Unknown recurrence type %r, task treated as non-recurring", kind)
                return None
            return {**v, "type": kind.lower()}
        if isinstance(v, Recurrence):
            return v
        logger.warning("[Schema] Unreadable recurrence rule %r, task treated as non-recurring", v)
        return None

    @field_validator('attachments', mode='before')
    @classmethod
    def coerce_attachments(cls, v):
        if not v:
            return []
        if not isinstance(v, list):
            logger.warning("[Schema] Unreadable attachments (%s) ignored", type(v).__name__)
            return []
        kept = [a for a in v if isinstance(a, (dict, Attachment))]
        if len(kept) != len(v):
            logger.warning("[Schema] Dropped %d unreadable attachment(s)", len(v) - len(kept))
        return kept

    @field_validator('subtasks', mode='before')
    @classmethod
    def coerce_subtasks(cls, v):
        if not v:
            return []
        if not isinstance(v, list):
            logger.warning("[Schema] Unreadable subtasks (%s) ignored", type(v).__name__)
            return []
        kept = []
        for i, sub in enumerate(v):
            if isinstance(sub, Subtask):
                kept.append(sub)
            elif isinstance(sub, dict):
                # Subtasks without an id get a positional one so they stay toggleable
                if sub.get("id") in (None, ""):
                    sub = {**sub, "id": f"sub-{i + 1}"}
                kept.append(sub)
            else:
                logger.warning("[Schema] Dropped unreadable subtask #%d", i)
        return kept

    @field_validator('completed', 'notified_reminder', 'notified_soon', 'notified_overdue', mode='before')
    @classmethod
    def coerce_flag(cls, v):
        return bool(v)

    @property
    def is_scheduled(self) -> bool:
        return self.date_time is not None

    def to_storage_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def parse_tags(text: Optional[str]) -> List[str]:
    """Split a comma separated tag string ("work, urgent") into clean tags."""
    if not text or not text.strip():
        return []
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def load_task_records(raw: Any) -> List[TaskRecord]:
    """
    Validate a raw persisted task list.

    A payload that is not a list yields an empty collection. Only entries
    without an id or a title, and duplicate ids, are dropped; unreadable
    attachments or subtasks are cleaned inside the record.
    """
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("[Schema] Stored tasks are not a list (%s), starting empty", type(raw).__name__)
        return []

    records: List[TaskRecord] = []
    seen_ids = set()
    for i, item in enumerate(raw):
        try:
            record = TaskRecord.model_validate(item)
        except ValidationError as e:
            logger.warning("[Schema] Dropping stored task #%d: %s", i, e.errors()[0].get("msg"))
            continue
        if record.id in seen_ids:
            logger.warning("[Schema] Dropping stored task #%d: duplicate id %s", i, record.id)
            continue
        seen_ids.add(record.id)
        records.append(record)
    return records


def dump_task_records(tasks: Iterable[TaskRecord]) -> List[Dict[str, Any]]:
    return [t.to_storage_dict() for t in tasks]
