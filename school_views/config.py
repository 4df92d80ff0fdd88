"""Central configuration for the school views package."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone
from decimal import Context

PAGE_SIZE_OPTIONS = (5, 8, 12, 20, 50)

# Closed lower bounds on the 0-20 scale, highest band first.
MENTION_THRESHOLDS = (16.0, 14.0, 12.0)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(slots=True, frozen=True)
class Settings:
    decimal_context: Context
    timezone: timezone
    page_size_options: tuple[int, ...]
    default_payment_page_size: int
    default_evaluation_page_size: int
    overdue_days: int
    currency_suffix: str
    max_grade: float
    mention_thresholds: tuple[float, ...]


SETTINGS = Settings(
    decimal_context=Context(prec=28),
    timezone=timezone.utc,
    page_size_options=PAGE_SIZE_OPTIONS,
    default_payment_page_size=20,
    default_evaluation_page_size=8,
    overdue_days=_env_int("SCHOOL_VIEWS_OVERDUE_DAYS", 30),
    currency_suffix="FG",
    max_grade=20.0,
    mention_thresholds=MENTION_THRESHOLDS,
)
