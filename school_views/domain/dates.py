"""Timestamp helpers shared by the filter and sort engines.

Canonical records carry ISO-8601 strings. These helpers turn them back
into comparable values without ever raising.
"""
from __future__ import annotations

from datetime import date, datetime, timezone


def to_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 value into an aware datetime, or ``None``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_calendar_day(value: object) -> date | None:
    parsed = to_timestamp(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).date()


def sortable_timestamp(value: object) -> float:
    """Seconds since the epoch; unparsable values sort as the oldest."""
    parsed = to_timestamp(value)
    if parsed is None:
        return float("-inf")
    return parsed.timestamp()
