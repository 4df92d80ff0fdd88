"""Domain-level results produced by a record view pass."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Generic, Mapping, Sequence, TypeVar

from school_views.domain.models import Mention

R = TypeVar("R")
S = TypeVar("S")


@dataclass(frozen=True)
class PaymentStats:
    total_revenue: Decimal
    monthly_revenue: Decimal
    pending_amount: Decimal
    pending_count: int
    overdue_amount: Decimal
    overdue_count: int
    total_transactions: int
    students: int


@dataclass(frozen=True)
class MentionShare:
    count: int
    percentage: float


@dataclass(frozen=True)
class EvaluationStats:
    total_evaluations: int
    students_evaluated: int
    global_average: float | None
    average_attendance: float
    total_pages_memorized: int
    mentions: Mapping[Mention, MentionShare] = field(default_factory=dict)
    subject_averages: Mapping[str, float | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ViewStats(Generic[S]):
    """Statistics over two explicitly separate scopes.

    ``overall`` covers the whole working set and ignores filters;
    ``filtered`` covers the filtered, unpaginated set.
    """

    overall: S
    filtered: S


@dataclass(frozen=True)
class RecordView(Generic[R, S]):
    page: Sequence[R]
    total_pages: int
    total_items: int
    page_number: int
    page_size: int
    stats: ViewStats[S]

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page_number > 1 and self.total_pages > 0
