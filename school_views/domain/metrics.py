"""Derived-metrics calculator.

The formulas and thresholds in this module are the only place where
completion, payment status and grade mentions are computed. Everything
else reads the derived fields.
"""
from __future__ import annotations

import calendar
import math
from decimal import Decimal
from typing import Sequence

from school_views.config import SETTINGS
from school_views.domain.dates import to_timestamp
from school_views.domain.models import (
    DerivedEvaluation,
    DerivedPayment,
    Evaluation,
    Grades,
    Mention,
    Payment,
    PaymentStatus,
)

HUNDRED = Decimal("100")
ZERO = Decimal("0")

_MENTION_BANDS = (Mention.EXCELLENT, Mention.GOOD, Mention.AVERAGE)


def period_label(month: int, year: int) -> str:
    if 1 <= month <= 12:
        return f"{calendar.month_name[month]} {year}"
    return f"Unknown month {year}"


def payment_status(is_complete: bool, amount_paid: Decimal) -> PaymentStatus:
    if is_complete:
        return PaymentStatus.PAID
    if amount_paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def derive_payment(payment: Payment) -> DerivedPayment:
    amount_paid = payment.amount_paid
    # No stated due amount means the payment settles itself.
    effective_due = payment.amount_due if payment.amount_due > 0 else amount_paid
    is_complete = amount_paid >= effective_due
    if is_complete:
        completion_rate = HUNDRED
    else:
        # paid < due here, so the ratio stays below one
        completion_rate = amount_paid / effective_due * HUNDRED
    return DerivedPayment(
        record=payment,
        effective_due=effective_due,
        completion_rate=completion_rate,
        is_complete=is_complete,
        difference=amount_paid - effective_due,
        status=payment_status(is_complete, amount_paid),
        period_label=period_label(payment.payment_month, payment.payment_year),
    )


def qualifying_score(value: float | None) -> float | None:
    """Return the score if it counts towards an average, else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    if 0 < number <= SETTINGS.max_grade:
        return number
    return None


def overall_grade(grades: Grades) -> float | None:
    included = [
        score
        for score in (qualifying_score(v) for v in grades.as_dict().values())
        if score is not None
    ]
    if not included:
        return None
    return sum(included) / len(included)


def mention_for(grade: float | None, thresholds: Sequence[float] | None = None) -> Mention:
    if grade is None:
        return Mention.NOT_GRADED
    bounds = thresholds if thresholds is not None else SETTINGS.mention_thresholds
    for bound, mention in zip(bounds, _MENTION_BANDS):
        if grade >= bound:
            return mention
    return Mention.BELOW_AVERAGE


def derive_evaluation(evaluation: Evaluation) -> DerivedEvaluation:
    grade = overall_grade(evaluation.grades)
    stamp = to_timestamp(evaluation.evaluation_date)
    label = period_label(stamp.month, stamp.year) if stamp is not None else ""
    return DerivedEvaluation(
        record=evaluation,
        overall_grade=grade,
        mention=mention_for(grade),
        period_label=label,
    )
