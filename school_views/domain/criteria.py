"""Filter, sort and page configuration for a record view."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Mapping

from school_views.config import SETTINGS
from school_views.errors import ConfigurationError, InvalidPageSizeError

NO_OP_SELECTOR_VALUES = frozenset({"", "all"})


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: object) -> "SortDirection":
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().lower()
        for member in cls:
            if member.value == token:
                return member
        raise ConfigurationError(f"Unknown sort direction: {value!r}")


@dataclass(frozen=True)
class NumericRange:
    """Inclusive numeric band; either bound may be left open."""

    minimum: float | None = None
    maximum: float | None = None
    field: str | None = None

    def is_active(self) -> bool:
        return self.minimum is not None or self.maximum is not None

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar-day range; either bound may be left open."""

    start: date | None = None
    end: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_day(self.start))
        object.__setattr__(self, "end", _as_day(self.end))

    def is_active(self) -> bool:
        return self.start is not None or self.end is not None

    def contains(self, day: date) -> bool:
        if self.start is not None and day < self.start:
            return False
        if self.end is not None and day > self.end:
            return False
        return True


def _as_day(value: object) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as exc:
        raise ConfigurationError(f"Invalid date bound: {value!r}") from exc


@dataclass(frozen=True)
class FilterCriteria:
    """Independently optional criteria, combined with logical AND."""

    search: str = ""
    selectors: Mapping[str, object] = field(default_factory=dict)
    value_range: NumericRange | None = None
    date_range: DateRange | None = None

    def active_selectors(self) -> dict[str, object]:
        return {
            name: value
            for name, value in self.selectors.items()
            if not is_no_op_selector(value)
        }

    @property
    def search_term(self) -> str:
        return self.search.strip().casefold()


def is_no_op_selector(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in NO_OP_SELECTOR_VALUES
    return False


@dataclass(frozen=True)
class ViewRequest:
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    sort_key: str | None = None
    direction: SortDirection | str = SortDirection.DESC
    page: int = 1
    page_size: int = 20

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", SortDirection.parse(self.direction))
        if self.page_size not in SETTINGS.page_size_options:
            raise InvalidPageSizeError(
                f"Page size {self.page_size} not in {SETTINGS.page_size_options}"
            )
