"""Shared coercion utilities for raw record normalization.

Every helper is total: bad input becomes the documented default, never
an exception and never NaN.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal, DecimalException
from io import BytesIO
from pathlib import Path
from typing import Any, Mapping

import pandas as pd

from school_views.config import SETTINGS

_TRUE_TOKENS = {"true", "1", "yes", "y", "on"}


def ensure_bytes(source: BytesIO | Path | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, Path):
        return source.read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def is_missing(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if not is_missing(value):
            return value
    return None


def parse_text(value: object, default: str = "") -> str:
    if is_missing(value):
        return default
    if isinstance(value, (dict, list, tuple, set)):
        return default
    return str(value).strip()


def parse_decimal(value: object) -> Decimal:
    if is_missing(value) or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    s = str(value).strip()
    if s.upper() == "NAN":
        return Decimal("0")
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    for ch in [",", "$", "€", "£", " ", " ", " "]:
        s = s.replace(ch, "")
    for suffix in ("GNF", "FG"):
        if s.upper().endswith(suffix):
            s = s[: -len(suffix)]
    try:
        result = SETTINGS.decimal_context.create_decimal(s)
    except DecimalException:
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    if negative:
        result = -result
    return result


def parse_amount(value: object) -> Decimal:
    """Money is never negative; anything unusable becomes zero."""
    amount = parse_decimal(value)
    return amount if amount > 0 else Decimal("0")


def parse_int(value: object, default: int = 0) -> int:
    if is_missing(value) or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip().replace(",", ""))
    except ValueError:
        return default
    if not math.isfinite(number):
        return default
    return int(number)


def parse_float(value: object) -> float | None:
    if is_missing(value) or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip().replace(",", "."))
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_TOKENS
    return False


def utc_now(now: datetime | None = None) -> datetime:
    current = now or datetime.now(SETTINGS.timezone)
    if current.tzinfo is None:
        current = current.replace(tzinfo=SETTINGS.timezone)
    return current.astimezone(SETTINGS.timezone)


def parse_timestamp(value: object, now: datetime) -> str:
    """Return an ISO-8601 UTC string; unparsable input becomes ``now``."""
    if isinstance(value, (str, datetime, date, pd.Timestamp)) and not is_missing(value):
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
        if not pd.isna(parsed):
            return parsed.isoformat()
    return utc_now(now).isoformat()
