"""Timestamp parsing and day arithmetic shared by the timeline and analytics layers."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, timedelta
from typing import Any

SECONDS_PER_DAY = 86_400


def parse_timestamp(value: Any) -> datetime | None:
    """
    Coerce a raw timestamp into an aware UTC datetime.

    Accepts datetimes, dates, ISO-8601 strings (a trailing "Z" is fine) and
    epoch milliseconds. Naive values are taken as UTC. Anything else,
    including malformed strings, yields None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def elapsed_days(start: datetime, end: datetime) -> float:
    """Signed fractional days from start to end."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def ceil_days(start: datetime, end: datetime) -> int:
    """Signed whole days from start to end, rounded up."""
    return math.ceil(elapsed_days(start, end))


def floor_days(start: datetime, end: datetime) -> int:
    return math.floor(elapsed_days(start, end))


def add_days(ts: datetime, days: float) -> datetime:
    return ts + timedelta(days=days)


def month_key(ts: datetime) -> str:
    return ts.strftime("%Y-%m")
