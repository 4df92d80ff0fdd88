"""Table renderers for payment and evaluation views."""
from __future__ import annotations

import csv
import html
import io
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Sequence

import pandas as pd

from school_views.config import SETTINGS
from school_views.domain.models import DerivedEvaluation, DerivedPayment


def format_amount(amount: Decimal | int | float) -> str:
    value = Decimal(str(amount))
    try:
        value = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return f"{value:E} {SETTINGS.currency_suffix}"
    return f"{value:,} {SETTINGS.currency_suffix}"



def format_grade(grade: float | None) -> str:
    return "N/A" if grade is None else f"{grade:.2f}/{SETTINGS.max_grade:g}"


def payments_to_rows(payments: Sequence[DerivedPayment]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for item in payments:
        payment = item.record
        rows.append(
            {
                "receipt_number": payment.receipt_number,
                "student": payment.student.full_name,
                "student_number": payment.student.student_number,
                "payment_date": payment.payment_date[:10],
                "period": item.period_label,
                "type": payment.type_label,
                "method": payment.payment_method.label,
                "amount": format_amount(payment.amount_paid),
                "amount_due": format_amount(item.effective_due),
                "completion_rate": f"{item.completion_rate:.1f}%",
                "difference": format_amount(item.difference),
                "status": item.status_label,
            }
        )
    return rows


def evaluations_to_rows(evaluations: Sequence[DerivedEvaluation]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for item in evaluations:
        evaluation = item.record
        rows.append(
            {
                "student": evaluation.student.full_name,
                "student_number": evaluation.student.student_number,
                "class": evaluation.student.class_name,
                "evaluation_date": evaluation.evaluation_date[:10],
                "sourate": evaluation.current_sourate,
                "memorization_status": evaluation.memorization_status.label,
                "overall_grade": format_grade(item.overall_grade),
                "mention": item.mention.label,
                "attendance_rate": f"{evaluation.attendance_rate:.1f}%",
                "validated": "yes" if evaluation.is_validated else "no",
            }
        )
    return rows


def render_csv(rows: Sequence[dict[str, str]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(rows[0].keys()) if rows else [])
    if rows:
        writer.writeheader()
        writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def render_html(rows: Sequence[dict[str, str]]) -> str:
    if not rows:
        return "<p>No records match the current filters.</p>"
    header = "".join(f"<th>{html.escape(col)}</th>" for col in rows[0].keys())
    body_parts = []
    for row in rows:
        body_parts.append("<tr>" + "".join(f"<td>{html.escape(value)}</td>" for value in row.values()) + "</tr>")
    body_html = "".join(body_parts)
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body_html}</tbody></table>"


def render_xlsx(rows: Sequence[dict[str, str]], sheet_name: str = "records") -> bytes:
    buffer = io.BytesIO()
    frame = pd.DataFrame(list(rows))
    with pd.ExcelWriter(buffer, engine="xlsxwriter") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()
