# planner/date_utils.py

from __future__ import annotations
from typing import Any, Optional
from datetime import datetime, date, timedelta
import calendar
import re


_EPOCH_MS_RE = re.compile(r"^\d{11,14}$")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored task timestamp into a naive local datetime.

    Accepts:
      - datetime instances (aware values are converted to local time)
      - date instances (midnight)
      - ISO strings, including the "YYYY-MM-DDTHH:MM" form produced by
        datetime-local inputs and a trailing "Z"
      - epoch milliseconds (int/float or all-digit string)

    Returns None for anything that cannot be read as an instant.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, (int, float)):
        return _from_epoch_ms(value)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    if _EPOCH_MS_RE.match(text):
        return _from_epoch_ms(int(text))

    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"

    try:
        return _to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        return None


def same_calendar_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def add_months(dt: datetime, months: int) -> datetime:
    """
    Calendar month arithmetic.

    Jan 31 + 1 month -> Feb 28/29: the day is clamped to the last day of the
    target month instead of spilling over into the following month.
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, last_day))


def _from_epoch_ms(value: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(value / 1000.0)
    except (OverflowError, OSError, ValueError):
        return None


def _to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)
