"""Domain services: filter, sort, paginate and aggregate derived records.

Every function here is pure. The working set is never mutated; each
stage returns a new tuple.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, Overflow, localcontext
from typing import Callable, Generic, Iterable, Sequence, TypeVar

from school_views.config import SETTINGS
from school_views.domain.criteria import FilterCriteria, SortDirection, ViewRequest
from school_views.domain.dates import sortable_timestamp, to_calendar_day, to_timestamp
from school_views.domain.fields import EVALUATION_FIELDS, PAYMENT_FIELDS, RecordFields, ValueKind
from school_views.domain.metrics import qualifying_score
from school_views.domain.models import DerivedEvaluation, DerivedPayment, LabelledEnum, Mention
from school_views.domain.results import (
    EvaluationStats,
    MentionShare,
    PaymentStats,
    RecordView,
    ViewStats,
)

R = TypeVar("R")
S = TypeVar("S")

_TRUE_TOKENS = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_TOKENS = frozenset({"false", "0", "no", "n", "off"})


# -- filtering ---------------------------------------------------------------


def _selector_matches(actual: object, wanted: object) -> bool:
    if isinstance(wanted, (list, tuple, set, frozenset)):
        return any(_selector_matches(actual, item) for item in wanted)
    if isinstance(actual, bool):
        if isinstance(wanted, bool):
            return actual is wanted
        token = str(wanted).strip().lower()
        if token in _TRUE_TOKENS:
            return actual
        if token in _FALSE_TOKENS:
            return not actual
        return False
    if isinstance(actual, LabelledEnum):
        return type(actual).lookup(wanted) is actual
    return str(actual).strip().casefold() == str(wanted).strip().casefold()


def _as_number(value: object) -> Decimal | float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else None
    return None


def filter_records(
    records: Sequence[R], criteria: FilterCriteria, fields: RecordFields[R]
) -> tuple[R, ...]:
    """Keep the records matching every active criterion, in input order."""
    predicates: list[Callable[[R], bool]] = []

    term = criteria.search_term
    if term:
        searchable = fields.searchable

        def matches_search(record: R) -> bool:
            return any(term in (getter(record) or "").casefold() for getter in searchable)

        predicates.append(matches_search)

    for name, wanted in criteria.active_selectors().items():
        getter = fields.selector(name)
        predicates.append(
            lambda record, getter=getter, wanted=wanted: _selector_matches(getter(record), wanted)
        )

    value_range = criteria.value_range
    if value_range is not None and value_range.is_active():
        numeric = fields.numeric_field(value_range.field)

        def matches_range(record: R) -> bool:
            value = _as_number(numeric(record))
            return value is not None and value_range.contains(value)

        predicates.append(matches_range)

    date_range = criteria.date_range
    if date_range is not None and date_range.is_active():
        primary_date = fields.primary_date

        def matches_dates(record: R) -> bool:
            day = to_calendar_day(primary_date(record))
            return day is not None and date_range.contains(day)

        predicates.append(matches_dates)

    if not predicates:
        return tuple(records)
    return tuple(record for record in records if all(p(record) for p in predicates))


# -- sorting -----------------------------------------------------------------


def _sort_value(kind: ValueKind, value: object):
    if kind is ValueKind.DATE:
        return sortable_timestamp(value)
    if kind is ValueKind.TEXT:
        return str(value or "").casefold()
    number = _as_number(value)
    return 0 if number is None else number


def sort_records(
    records: Sequence[R],
    key: str | None,
    direction: SortDirection | str,
    fields: RecordFields[R],
) -> tuple[R, ...]:
    """Stable sort; ties keep their input order in both directions."""
    sort_field = fields.sort_field(key)
    descending = SortDirection.parse(direction) is SortDirection.DESC
    return tuple(
        sorted(
            records,
            key=lambda record: _sort_value(sort_field.kind, sort_field.getter(record)),
            reverse=descending,
        )
    )


# -- pagination --------------------------------------------------------------


def total_pages(total_items: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return math.ceil(total_items / page_size)


def paginate(records: Sequence[R], page: int, page_size: int) -> tuple[R, ...]:
    """Slice a 1-indexed page; out-of-range pages are empty."""
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")
    if page < 1:
        return ()
    start = (page - 1) * page_size
    return tuple(records[start : start + page_size])


# -- aggregation -------------------------------------------------------------


def summarize_payments(
    records: Iterable[DerivedPayment],
    as_of: datetime | None = None,
    overdue_days: int | None = None,
) -> PaymentStats:
    """Money statistics; cancelled payments are left out of every total."""
    now = as_of or datetime.now(SETTINGS.timezone)
    if now.tzinfo is None:
        now = now.replace(tzinfo=SETTINGS.timezone)
    days = SETTINGS.overdue_days if overdue_days is None else overdue_days

    total = monthly = pending = overdue = Decimal("0")
    pending_count = overdue_count = transactions = 0
    students: set[str] = set()
    with localcontext() as ctx:
        # absurd magnitudes saturate to Infinity
        ctx.traps[Overflow] = False
        for item in records:
            payment = item.record
            if payment.is_cancelled:
                continue
            transactions += 1
            total += payment.amount_paid
            if payment.student.id:
                students.add(payment.student.id)
            stamp = to_timestamp(payment.payment_date)
            if stamp is not None and (stamp.year, stamp.month) == (now.year, now.month):
                monthly += payment.amount_paid
            shortfall = item.shortfall
            if shortfall > 0:
                pending += shortfall
                pending_count += 1
                if item.is_overdue(now, days):
                    overdue += shortfall
                    overdue_count += 1

    return PaymentStats(
        total_revenue=total,
        monthly_revenue=monthly,
        pending_amount=pending,
        pending_count=pending_count,
        overdue_amount=overdue,
        overdue_count=overdue_count,
        total_transactions=transactions,
        students=len(students),
    )


def _mean(values: Sequence[float]) -> float | None:
    if not values:
        return None
    return sum(values) / len(values)


def summarize_evaluations(records: Iterable[DerivedEvaluation]) -> EvaluationStats:
    items = list(records)
    graded = [item.overall_grade for item in items if item.overall_grade is not None]
    mention_counts = Counter(item.mention for item in items if item.has_grade)
    mentions = {
        mention: MentionShare(
            count=mention_counts.get(mention, 0),
            percentage=round(mention_counts.get(mention, 0) * 100 / len(graded), 1) if graded else 0.0,
        )
        for mention in Mention
        if mention is not Mention.NOT_GRADED
    }

    subject_scores: dict[str, list[float]] = {
        "memorization": [],
        "recitation": [],
        "tajwid": [],
        "behavior": [],
    }
    for item in items:
        for subject, value in item.record.grades.as_dict().items():
            score = qualifying_score(value)
            if score is not None:
                subject_scores[subject].append(score)

    attendance = _mean([item.record.attendance_rate for item in items])
    return EvaluationStats(
        total_evaluations=len(items),
        students_evaluated=len({item.record.student.id for item in items if item.record.student.id}),
        global_average=_mean(graded),
        average_attendance=attendance if attendance is not None else 0.0,
        total_pages_memorized=sum(item.record.pages_memorized for item in items),
        mentions=mentions,
        subject_averages={subject: _mean(scores) for subject, scores in subject_scores.items()},
    )


# -- pipeline ----------------------------------------------------------------


@dataclass(frozen=True)
class RecordPipeline(Generic[R, S]):
    """filter -> sort -> paginate, with statistics over two scopes."""

    fields: RecordFields[R]
    summarize: Callable[[Sequence[R]], S]

    def ordered(self, working_set: Sequence[R], request: ViewRequest) -> tuple[R, ...]:
        """The filtered, sorted and unpaginated records."""
        filtered = filter_records(working_set, request.criteria, self.fields)
        return sort_records(filtered, request.sort_key, request.direction, self.fields)

    def view(self, working_set: Sequence[R], request: ViewRequest) -> RecordView[R, S]:
        filtered = filter_records(working_set, request.criteria, self.fields)
        ordered = sort_records(filtered, request.sort_key, request.direction, self.fields)
        return RecordView(
            page=paginate(ordered, request.page, request.page_size),
            total_pages=total_pages(len(ordered), request.page_size),
            total_items=len(ordered),
            page_number=request.page,
            page_size=request.page_size,
            stats=ViewStats(
                overall=self.summarize(working_set),
                filtered=self.summarize(filtered),
            ),
        )


def payment_pipeline(
    as_of: datetime | None = None, overdue_days: int | None = None
) -> RecordPipeline[DerivedPayment, PaymentStats]:
    return RecordPipeline(
        fields=PAYMENT_FIELDS,
        summarize=lambda records: summarize_payments(records, as_of=as_of, overdue_days=overdue_days),
    )


EVALUATION_PIPELINE: RecordPipeline[DerivedEvaluation, EvaluationStats] = RecordPipeline(
    fields=EVALUATION_FIELDS,
    summarize=summarize_evaluations,
)
