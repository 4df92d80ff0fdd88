"""Normalizer turning raw payment records into canonical payments."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from school_views.domain.models import Payment, PaymentMethod, PaymentType
from school_views.infrastructure.parsing.students import normalize_student
from school_views.infrastructure.parsing.utils import (
    first_present,
    parse_amount,
    parse_bool,
    parse_int,
    parse_text,
    parse_timestamp,
    utc_now,
)


def _payment_type(raw: Mapping[str, Any]) -> tuple[PaymentType, str]:
    value = first_present(raw, "payment_type", "type")
    custom = parse_text(raw.get("custom_payment_type"))
    if value is None:
        return PaymentType.TUITION_MONTHLY, custom
    member = PaymentType.lookup(value)
    if member is None:
        return PaymentType.OTHER, custom or parse_text(value)
    return member, custom


def _payment_method(raw: Mapping[str, Any]) -> PaymentMethod:
    value = first_present(raw, "payment_method", "method")
    if value is None:
        return PaymentMethod.CASH
    member = PaymentMethod.lookup(value)
    return member if member is not None else PaymentMethod.OTHER


def normalize_payment(raw: Mapping[str, Any] | None, now: datetime | None = None) -> Payment:
    """Total mapping from a raw payment to the canonical shape.

    ``now`` fills missing or unparsable dates and the payment period.
    """
    data = raw if isinstance(raw, Mapping) else {}
    current = utc_now(now)
    payment_type, custom_type = _payment_type(data)

    return Payment(
        id=parse_text(data.get("id")),
        receipt_number=parse_text(data.get("receipt_number"), "N/A"),
        student=normalize_student(data.get("student"), fallback=data),
        amount_paid=parse_amount(first_present(data, "amount", "amount_paid")),
        amount_due=parse_amount(data.get("amount_due")),
        payment_date=parse_timestamp(first_present(data, "payment_date", "date"), current),
        payment_type=payment_type,
        custom_payment_type=custom_type,
        payment_method=_payment_method(data),
        payment_month=parse_int(data.get("payment_month"), current.month),
        payment_year=parse_int(data.get("payment_year"), current.year),
        number_of_months=max(1, parse_int(data.get("number_of_months"), 1)),
        paid_by=parse_text(data.get("paid_by"), "N/A"),
        notes=parse_text(data.get("notes")),
        created_at=parse_timestamp(data.get("created_at"), current),
        is_cancelled=parse_bool(data.get("is_cancelled")),
    )
