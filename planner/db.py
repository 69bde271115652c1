"""
db.py

SQLite key-value helpers backing the persisted task list. The task list is
stored wholesale as one JSON document under a single key.
"""

import os
import sqlite3
from typing import Dict, List, Optional

from planner.config import config


def _db_path() -> str:
    return os.environ.get("PLANNER_DB_PATH", config["db_path"])


def _connect(db_path: Optional[str] = None) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path or _db_path())
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Optional[str] = None) -> None:
    with _connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )


def get_value(key: str, db_path: Optional[str] = None) -> Optional[str]:
    init_db(db_path)
    with _connect(db_path) as conn:
        row = conn.execute(
            "SELECT value FROM kv_store WHERE key = ?",
            (key,),
        ).fetchone()
        return row["value"] if row else None


def set_value(key: str, value: str, db_path: Optional[str] = None) -> None:
    init_db(db_path)
    with _connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO kv_store (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, value),
        )
        conn.commit()


def delete_value(key: str, db_path: Optional[str] = None) -> None:
    init_db(db_path)
    with _connect(db_path) as conn:
        conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        conn.commit()


def list_keys(db_path: Optional[str] = None) -> List[Dict[str, str]]:
    init_db(db_path)
    with _connect(db_path) as conn:
        rows = conn.execute(
            "SELECT key, length(value) AS size, updated_at FROM kv_store ORDER BY key"
        ).fetchall()
        return [dict(row) for row in rows]
