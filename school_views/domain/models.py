"""Domain models for the school record views.

Canonical records are the fully-typed, defaulted shape produced by the
normalizers. Derived records wrap a canonical record together with the
computed fields that are never stored anywhere.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from school_views.domain.dates import to_timestamp


class LabelledEnum(str, Enum):
    """String enum carrying a human readable label."""

    def __new__(cls, value: str, label: str):
        member = str.__new__(cls, value)
        member._value_ = value
        member.label = label
        return member

    @classmethod
    def lookup(cls, value: object):
        """Return the member whose value or label matches, ignoring case."""
        if isinstance(value, cls):
            return value
        token = str(value or "").strip().casefold()
        if not token:
            return None
        for member in cls:
            if token in (member.value.casefold(), member.label.casefold()):
                return member
        return None


class BoardingStatus(LabelledEnum):
    INTERNAL = ("interne", "Boarder")
    EXTERNAL = ("externe", "Day student")


class PaymentType(LabelledEnum):
    TUITION_MONTHLY = ("tuition_monthly", "Monthly tuition")
    REGISTRATION = ("registration", "Registration")
    EXAM_FEE = ("exam_fee", "Exams")
    BOOK_FEE = ("book_fee", "Books")
    UNIFORM_FEE = ("uniform_fee", "Uniform")
    TRANSPORT_FEE = ("transport_fee", "Transport")
    MEAL_FEE = ("meal_fee", "Meals")
    PENALTY = ("penalty", "Penalty")
    ADVANCE_PAYMENT = ("advance_payment", "Advance")
    OTHER = ("other", "Other")


class PaymentMethod(LabelledEnum):
    CASH = ("cash", "Cash")
    MOBILE_MONEY = ("mobile_money", "Mobile money")
    BANK_TRANSFER = ("bank_transfer", "Bank transfer")
    CARD = ("card", "Card")
    CHECK = ("check", "Check")
    OTHER = ("other", "Other")


class PaymentStatus(LabelledEnum):
    PAID = ("paid", "Paid")
    PARTIAL = ("partial", "Partial")
    PENDING = ("pending", "Pending")


class MemorizationStatus(LabelledEnum):
    NOT_STARTED = ("non_commence", "Not started")
    IN_PROGRESS = ("en_cours", "In progress")
    MEMORIZED = ("memorise", "Memorized")
    PERFECTED = ("perfectionne", "Perfected")
    TO_REVIEW = ("a_reviser", "To review")


class StudentBehavior(LabelledEnum):
    EXCELLENT = ("excellent", "Excellent")
    VERY_GOOD = ("tres_bon", "Very good")
    GOOD = ("bon", "Good")
    AVERAGE = ("moyen", "Average")
    DIFFICULT = ("difficile", "Difficult")


class Mention(LabelledEnum):
    EXCELLENT = ("excellent", "Excellent")
    GOOD = ("good", "Good")
    AVERAGE = ("average", "Average")
    BELOW_AVERAGE = ("below_average", "Below Average")
    NOT_GRADED = ("not_graded", "Not graded")


@dataclass(frozen=True)
class Student:
    """Student as embedded in payment and evaluation records."""

    id: str
    student_number: str
    first_name: str
    last_name: str
    full_name: str
    status: BoardingStatus
    is_orphan: bool
    age: int
    class_id: str = ""
    class_name: str = ""
    guardian_name: str = ""
    guardian_phone: str = ""


@dataclass(frozen=True)
class Payment:
    """Canonical student payment."""

    id: str
    receipt_number: str
    student: Student
    amount_paid: Decimal
    amount_due: Decimal
    payment_date: str
    payment_type: PaymentType
    payment_method: PaymentMethod
    payment_month: int
    payment_year: int
    number_of_months: int
    paid_by: str
    created_at: str
    custom_payment_type: str = ""
    notes: str = ""
    is_cancelled: bool = False

    @property
    def type_label(self) -> str:
        if self.payment_type is PaymentType.OTHER and self.custom_payment_type:
            return self.custom_payment_type
        return self.payment_type.label


@dataclass(frozen=True)
class Grades:
    """The four sub-scores of an evaluation, each on the 0-20 scale."""

    memorization: float | None = None
    recitation: float | None = None
    tajwid: float | None = None
    behavior: float | None = None

    def as_dict(self) -> dict[str, float | None]:
        return {
            "memorization": self.memorization,
            "recitation": self.recitation,
            "tajwid": self.tajwid,
            "behavior": self.behavior,
        }


@dataclass(frozen=True)
class Evaluation:
    """Canonical academic evaluation."""

    id: str
    student: Student
    evaluation_date: str
    current_sourate: str
    pages_memorized: int
    verses_memorized: int
    memorization_status: MemorizationStatus
    grades: Grades
    attendance_rate: float
    student_behavior: StudentBehavior
    created_at: str
    teacher_comment: str = ""
    next_month_objective: str = ""
    difficulties: str = ""
    strengths: str = ""
    is_validated: bool = False


@dataclass(frozen=True)
class DerivedPayment:
    """Payment plus its computed, non-persisted fields."""

    record: Payment
    effective_due: Decimal
    completion_rate: Decimal
    is_complete: bool
    difference: Decimal
    status: PaymentStatus
    period_label: str

    @property
    def status_label(self) -> str:
        return self.status.label

    @property
    def shortfall(self) -> Decimal:
        return max(Decimal("0"), -self.difference)

    def is_overdue(self, as_of: datetime, overdue_days: int) -> bool:
        """Unpaid balance on a live payment dated more than ``overdue_days`` before ``as_of``."""
        if self.record.is_cancelled or self.shortfall <= 0:
            return False
        stamp = to_timestamp(self.record.payment_date)
        return stamp is not None and stamp < as_of - timedelta(days=overdue_days)


@dataclass(frozen=True)
class DerivedEvaluation:
    """Evaluation plus its computed, non-persisted fields."""

    record: Evaluation
    overall_grade: float | None
    mention: Mention
    period_label: str

    @property
    def has_grade(self) -> bool:
        return self.overall_grade is not None

    @property
    def has_comments(self) -> bool:
        return bool(self.record.teacher_comment.strip())
