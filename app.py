"""Streamlit front-end for the school payment and evaluation views."""
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import streamlit as st

from school_views import (
    DateRange,
    FilterCriteria,
    NumericRange,
    ViewRequest,
    evaluation_session,
    evaluation_view_use_case,
    payment_session,
    payment_view_use_case,
)
from school_views.config import SETTINGS
from school_views.domain.fields import EVALUATION_FIELDS, PAYMENT_FIELDS
from school_views.domain.models import Mention, PaymentMethod, PaymentStatus, PaymentType
from school_views.domain.results import EvaluationStats, PaymentStats
from school_views.infrastructure.repositories.file_sources import source_for_path
from school_views.presentation.table_report import (
    evaluations_to_rows,
    format_amount,
    payments_to_rows,
    render_csv,
    render_html,
    render_xlsx,
)


st.set_page_config(page_title="School Records", layout="wide")
st.title("School Records")


if "payments" not in st.session_state:
    st.session_state["payments"] = payment_session()
if "evaluations" not in st.session_state:
    st.session_state["evaluations"] = evaluation_session()
if "page" not in st.session_state:
    st.session_state["page"] = 1


def reset_page() -> None:
    st.session_state["page"] = 1


def load_upload(session, uploaded) -> None:
    suffix = Path(uploaded.name).suffix or ".json"
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as handle:
        handle.write(uploaded.getvalue())
        path = Path(handle.name)
    try:
        session.refresh(source_for_path(path))
    finally:
        path.unlink(missing_ok=True)


def payment_metrics(stats: PaymentStats) -> None:
    cols = st.columns(5)
    cols[0].metric("Total revenue", format_amount(stats.total_revenue))
    cols[1].metric("This month", format_amount(stats.monthly_revenue))
    cols[2].metric("Pending", format_amount(stats.pending_amount))
    cols[3].metric("Overdue", format_amount(stats.overdue_amount))
    cols[4].metric("Transactions", stats.total_transactions)


def evaluation_metrics(stats: EvaluationStats) -> None:
    cols = st.columns(4)
    average = "N/A" if stats.global_average is None else f"{stats.global_average:.1f}/20"
    cols[0].metric("Evaluations", stats.total_evaluations)
    cols[1].metric("Students", stats.students_evaluated)
    cols[2].metric("Global average", average)
    cols[3].metric("Attendance", f"{stats.average_attendance:.1f}%")
    shares = st.columns(4)
    for col, mention in zip(shares, (Mention.EXCELLENT, Mention.GOOD, Mention.AVERAGE, Mention.BELOW_AVERAGE)):
        share = stats.mentions[mention]
        col.metric(mention.label, share.count, f"{share.percentage}%", delta_color="off")


kind = st.sidebar.radio("Records", ("Payments", "Evaluations"), on_change=reset_page)
is_payments = kind == "Payments"
session = st.session_state["payments"] if is_payments else st.session_state["evaluations"]
fields = PAYMENT_FIELDS if is_payments else EVALUATION_FIELDS

uploaded = st.sidebar.file_uploader("Upload export", type=["json", "csv", "xlsx", "xls"])
if st.sidebar.button("Refresh", disabled=uploaded is None) and uploaded is not None:
    with st.spinner("Loading..."):
        load_upload(session, uploaded)
    reset_page()

snapshot = session.snapshot()
if snapshot.is_failed:
    st.error(f"Loading failed: {snapshot.error}")
if not snapshot.records:
    st.info("No records loaded. Upload an export and press Refresh.")
    st.stop()

with st.expander("Filters", expanded=True):
    search = st.text_input("Search", on_change=reset_page)
    col1, col2, col3 = st.columns(3)
    selectors: dict[str, object] = {}
    if is_payments:
        selectors["status"] = col1.selectbox("Status", ["all"] + [s.value for s in PaymentStatus], on_change=reset_page)
        selectors["payment_type"] = col2.selectbox(
            "Type", ["all"] + [t.value for t in PaymentType], on_change=reset_page
        )
        selectors["payment_method"] = col3.selectbox(
            "Method", ["all"] + [m.value for m in PaymentMethod], on_change=reset_page
        )
        periods = sorted({item.period_label for item in snapshot.records})
        selectors["period"] = col1.selectbox("Period", ["all"] + periods, on_change=reset_page)
    else:
        selectors["mention"] = col1.selectbox("Mention", ["all"] + [m.value for m in Mention], on_change=reset_page)
        classes = sorted({item.record.student.class_id for item in snapshot.records if item.record.student.class_id})
        selectors["class_id"] = col2.selectbox("Class", ["all"] + classes, on_change=reset_page)
        selectors["validated"] = col3.selectbox("Validated", ["all", "true", "false"], on_change=reset_page)

    range_col1, range_col2, range_col3 = st.columns(3)
    range_field = range_col1.selectbox("Range on", list(fields.numeric), on_change=reset_page)
    minimum = range_col2.number_input("Min", value=None, on_change=reset_page)
    maximum = range_col3.number_input("Max", value=None, on_change=reset_page)

    date_col1, date_col2 = st.columns(2)
    date_from = date_col1.date_input("From", value=None, on_change=reset_page)
    date_to = date_col2.date_input("To", value=None, on_change=reset_page)

sort_col1, sort_col2, sort_col3 = st.columns(3)
sort_keys = list(fields.sort_keys)
sort_key = sort_col1.selectbox("Sort by", sort_keys, index=sort_keys.index(fields.default_sort))
direction = sort_col2.selectbox("Order", ["desc", "asc"])
default_size = SETTINGS.default_payment_page_size if is_payments else SETTINGS.default_evaluation_page_size
page_size = sort_col3.selectbox(
    "Per page",
    SETTINGS.page_size_options,
    index=SETTINGS.page_size_options.index(default_size),
    on_change=reset_page,
)

request = ViewRequest(
    criteria=FilterCriteria(
        search=search,
        selectors=selectors,
        value_range=NumericRange(minimum=minimum, maximum=maximum, field=range_field),
        date_range=DateRange(start=date_from, end=date_to),
    ),
    sort_key=sort_key,
    direction=direction,
    page=st.session_state["page"],
    page_size=page_size,
)
use_case = payment_view_use_case(session) if is_payments else evaluation_view_use_case(session)
view = use_case.execute(request)

st.subheader("All records")
(payment_metrics if is_payments else evaluation_metrics)(view.stats.overall)
st.subheader("Matching records")
(payment_metrics if is_payments else evaluation_metrics)(view.stats.filtered)
st.caption(f"{view.total_items} of {len(snapshot.records)} records match")

to_rows = payments_to_rows if is_payments else evaluations_to_rows
st.dataframe(pd.DataFrame(to_rows(view.page)), use_container_width=True, hide_index=True)

nav1, nav2, nav3 = st.columns([1, 2, 1])
if nav1.button("← Previous", disabled=not view.has_prev):
    st.session_state["page"] -= 1
    st.rerun()
nav2.write(f"Page {view.page_number} of {max(view.total_pages, 1)}")
if nav3.button("Next →", disabled=not view.has_next):
    st.session_state["page"] += 1
    st.rerun()

all_rows = to_rows(use_case.pipeline.ordered(session.records, request))
download1, download2, download3 = st.columns(3)
download1.download_button("Download CSV", data=render_csv(all_rows), file_name="records.csv", mime="text/csv")
download2.download_button(
    "Download HTML", data=render_html(all_rows).encode("utf-8"), file_name="records.html", mime="text/html"
)
download3.download_button(
    "Download XLSX",
    data=render_xlsx(all_rows),
    file_name="records.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)
