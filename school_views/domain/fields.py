"""Field catalogues describing how each record variant is searched,
selected, ranged and sorted."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Mapping, TypeVar

from school_views.domain.models import DerivedEvaluation, DerivedPayment
from school_views.errors import UnknownFieldError

R = TypeVar("R")


class ValueKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"


@dataclass(frozen=True)
class SortField(Generic[R]):
    kind: ValueKind
    getter: Callable[[R], object]


@dataclass(frozen=True)
class RecordFields(Generic[R]):
    name: str
    searchable: tuple[Callable[[R], str], ...]
    selectors: Mapping[str, Callable[[R], object]]
    numeric: Mapping[str, Callable[[R], object]]
    default_numeric: str
    primary_date: Callable[[R], str]
    sort_keys: Mapping[str, SortField[R]]
    default_sort: str

    def selector(self, name: str) -> Callable[[R], object]:
        try:
            return self.selectors[name]
        except KeyError:
            raise UnknownFieldError(
                f"Unknown {self.name} selector {name!r}; expected one of {sorted(self.selectors)}"
            ) from None

    def numeric_field(self, name: str | None) -> Callable[[R], object]:
        key = name or self.default_numeric
        try:
            return self.numeric[key]
        except KeyError:
            raise UnknownFieldError(
                f"Unknown {self.name} range field {key!r}; expected one of {sorted(self.numeric)}"
            ) from None

    def sort_field(self, name: str | None) -> SortField[R]:
        key = name or self.default_sort
        try:
            return self.sort_keys[key]
        except KeyError:
            raise UnknownFieldError(
                f"Unknown {self.name} sort key {key!r}; expected one of {sorted(self.sort_keys)}"
            ) from None


PAYMENT_FIELDS: RecordFields[DerivedPayment] = RecordFields(
    name="payment",
    searchable=(
        lambda p: p.record.student.full_name,
        lambda p: p.record.student.student_number,
        lambda p: p.record.receipt_number,
        lambda p: p.record.paid_by,
        lambda p: p.record.type_label,
        lambda p: p.record.notes,
    ),
    selectors={
        "status": lambda p: p.status,
        "payment_type": lambda p: p.record.payment_type,
        "payment_method": lambda p: p.record.payment_method,
        "period": lambda p: p.period_label,
        "class_id": lambda p: p.record.student.class_id,
        "cancelled": lambda p: p.record.is_cancelled,
    },
    numeric={
        "amount": lambda p: p.record.amount_paid,
        "amount_due": lambda p: p.effective_due,
        "completion_rate": lambda p: p.completion_rate,
        "difference": lambda p: p.difference,
    },
    default_numeric="amount",
    primary_date=lambda p: p.record.payment_date,
    sort_keys={
        "payment_date": SortField(ValueKind.DATE, lambda p: p.record.payment_date),
        "created_at": SortField(ValueKind.DATE, lambda p: p.record.created_at),
        "amount": SortField(ValueKind.NUMBER, lambda p: p.record.amount_paid),
        "amount_due": SortField(ValueKind.NUMBER, lambda p: p.effective_due),
        "student": SortField(ValueKind.TEXT, lambda p: p.record.student.full_name),
        "receipt_number": SortField(ValueKind.TEXT, lambda p: p.record.receipt_number),
        "status": SortField(ValueKind.TEXT, lambda p: p.status_label),
        "completion_rate": SortField(ValueKind.NUMBER, lambda p: p.completion_rate),
        "difference": SortField(ValueKind.NUMBER, lambda p: p.difference),
    },
    default_sort="payment_date",
)


EVALUATION_FIELDS: RecordFields[DerivedEvaluation] = RecordFields(
    name="evaluation",
    searchable=(
        lambda e: e.record.student.full_name,
        lambda e: e.record.student.student_number,
        lambda e: e.record.current_sourate,
        lambda e: e.record.student.class_name,
        lambda e: e.record.teacher_comment,
    ),
    selectors={
        "mention": lambda e: e.mention,
        "memorization_status": lambda e: e.record.memorization_status,
        "student_behavior": lambda e: e.record.student_behavior,
        "class_id": lambda e: e.record.student.class_id,
        "validated": lambda e: e.record.is_validated,
        "has_comments": lambda e: e.has_comments,
    },
    numeric={
        "overall_grade": lambda e: e.overall_grade,
        "memorization": lambda e: e.record.grades.memorization,
        "recitation": lambda e: e.record.grades.recitation,
        "tajwid": lambda e: e.record.grades.tajwid,
        "behavior": lambda e: e.record.grades.behavior,
        "attendance_rate": lambda e: e.record.attendance_rate,
    },
    default_numeric="overall_grade",
    primary_date=lambda e: e.record.evaluation_date,
    sort_keys={
        "evaluation_date": SortField(ValueKind.DATE, lambda e: e.record.evaluation_date),
        "created_at": SortField(ValueKind.DATE, lambda e: e.record.created_at),
        "overall_grade": SortField(ValueKind.NUMBER, lambda e: e.overall_grade),
        "student_name": SortField(ValueKind.TEXT, lambda e: e.record.student.full_name),
        "current_sourate": SortField(ValueKind.TEXT, lambda e: e.record.current_sourate),
        "attendance_rate": SortField(ValueKind.NUMBER, lambda e: e.record.attendance_rate),
    },
    default_sort="evaluation_date",
)
