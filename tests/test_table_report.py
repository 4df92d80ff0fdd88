from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO

import pandas as pd

from school_views.domain.metrics import derive_evaluation, derive_payment
from school_views.infrastructure.parsing.evaluations import normalize_evaluation
from school_views.infrastructure.parsing.payments import normalize_payment
from school_views.presentation.table_report import (
    evaluations_to_rows,
    format_amount,
    format_grade,
    payments_to_rows,
    render_csv,
    render_html,
    render_xlsx,
)

NOW = datetime(2025, 7, 15, 12, 0, tzinfo=timezone.utc)


def test_format_amount_groups_thousands():
    assert format_amount(Decimal("250000")) == "250,000 FG"
    assert format_amount(Decimal("-1500.4")) == "-1,500 FG"
    assert format_amount(0) == "0 FG"


def test_format_grade():
    assert format_grade(None) == "N/A"
    assert format_grade(15.5) == "15.50/20"


def test_payment_rows():
    payment = derive_payment(
        normalize_payment(
            {
                "receipt_number": "R-7",
                "amount": 150000,
                "amount_due": 200000,
                "payment_date": "2025-07-03T10:00:00Z",
                "payment_month": 7,
                "payment_year": 2025,
                "student": {"full_name": "Awa Diallo"},
            },
            now=NOW,
        )
    )

    [row] = payments_to_rows([payment])

    assert row["receipt_number"] == "R-7"
    assert row["payment_date"] == "2025-07-03"
    assert row["period"] == "July 2025"
    assert row["completion_rate"] == "75.0%"
    assert row["difference"] == "-50,000 FG"
    assert row["status"] == "Partial"


def test_evaluation_rows():
    evaluation = derive_evaluation(
        normalize_evaluation({"memorization_grade": 16, "attendance_rate": 95, "is_validated": True}, now=NOW)
    )

    [row] = evaluations_to_rows([evaluation])

    assert row["overall_grade"] == "16.00/20"
    assert row["mention"] == "Excellent"
    assert row["attendance_rate"] == "95.0%"
    assert row["validated"] == "yes"


def test_render_csv_and_html_escape():
    rows = [{"student": "A & B", "amount": "10 FG"}]

    assert render_csv(rows).decode("utf-8").splitlines() == ["student,amount", "A & B,10 FG"]
    assert "<td>A &amp; B</td>" in render_html(rows)


def test_render_empty_tables():
    assert render_csv([]) == b""
    assert render_html([]) == "<p>No records match the current filters.</p>"


def test_render_xlsx_round_trips_through_pandas():
    rows = [{"student": "Bah", "amount": "1,000 FG"}]

    frame = pd.read_excel(BytesIO(render_xlsx(rows)), engine="openpyxl")

    assert frame.to_dict(orient="records") == rows


def test_format_amount_handles_values_too_large_to_round():
    assert format_amount(Decimal("Infinity")) == "Infinity FG"
    assert format_amount(Decimal("1e999990")) == "1E+999990 FG"
