import json
import logging
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from planner import db
from planner.config import config
from planner.task_schema import TaskRecord, load_task_records, dump_task_records

logger = logging.getLogger(__name__)


class TaskStorage(Protocol):
    def load(self) -> List[TaskRecord]:
        ...

    def save(self, tasks: Sequence[TaskRecord]) -> bool:
        ...


def _decode(raw: Optional[str], source: str) -> List[TaskRecord]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("[Storage] Malformed task data in %s (%s), starting empty", source, e)
        return []
    return load_task_records(data)


class InMemoryTaskStorage:
    """Keeps the serialized list in memory; used by tests and the demo."""

    def __init__(self, raw: Optional[str] = None):
        self.raw = raw
        self.save_count = 0

    def load(self) -> List[TaskRecord]:
        return _decode(self.raw, "memory")

    def save(self, tasks: Sequence[TaskRecord]) -> bool:
        self.raw = json.dumps(dump_task_records(tasks))
        self.save_count += 1
        return True


class JsonFileTaskStorage:
    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> List[TaskRecord]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("[Storage] Could not read %s: %s", self.path, e)
            return []
        return _decode(raw, str(self.path))

    def save(self, tasks: Sequence[TaskRecord]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(dump_task_records(tasks), indent=2), encoding="utf-8")
            tmp.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("[Storage] Could not write %s: %s", self.path, e)
            return False
        return True


class SqliteTaskStorage:
    """The whole task list as one JSON value in the SQLite key-value table."""

    def __init__(self, db_path: Optional[str] = None, key: Optional[str] = None):
        self.db_path = db_path
        self.key = key or config["storage_key"]

    def load(self) -> List[TaskRecord]:
        try:
            raw = db.get_value(self.key, self.db_path)
        except Exception as e:
            logger.error("[Storage] Could not read key %s: %s", self.key, e)
            return []
        return _decode(raw, f"sqlite:{self.key}")

    def save(self, tasks: Sequence[TaskRecord]) -> bool:
        try:
            db.set_value(self.key, json.dumps(dump_task_records(tasks)), self.db_path)
        except Exception as e:
            logger.error("[Storage] Could not write key %s: %s", self.key, e)
            return False
        return True
