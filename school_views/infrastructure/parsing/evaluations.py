"""Normalizer turning raw academic evaluations into canonical evaluations."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from school_views.domain.models import Evaluation, Grades, MemorizationStatus, StudentBehavior
from school_views.infrastructure.parsing.students import normalize_student
from school_views.infrastructure.parsing.utils import (
    first_present,
    parse_bool,
    parse_float,
    parse_int,
    parse_text,
    parse_timestamp,
    utc_now,
)


def _grade(data: Mapping[str, Any], nested: Mapping[str, Any], subject: str) -> float | None:
    value = first_present(data, f"{subject}_grade")
    if value is None:
        value = nested.get(subject)
    return parse_float(value)


def _grades(data: Mapping[str, Any]) -> Grades:
    nested = data.get("grades")
    if not isinstance(nested, Mapping):
        nested = {}
    return Grades(
        memorization=_grade(data, nested, "memorization"),
        recitation=_grade(data, nested, "recitation"),
        tajwid=_grade(data, nested, "tajwid"),
        behavior=_grade(data, nested, "behavior"),
    )


def normalize_evaluation(raw: Mapping[str, Any] | None, now: datetime | None = None) -> Evaluation:
    data = raw if isinstance(raw, Mapping) else {}
    current = utc_now(now)
    memorization_status = MemorizationStatus.lookup(data.get("memorization_status"))
    behavior = StudentBehavior.lookup(data.get("student_behavior"))
    attendance = parse_float(data.get("attendance_rate"))

    return Evaluation(
        id=parse_text(data.get("id")),
        student=normalize_student(data.get("student"), fallback=data),
        evaluation_date=parse_timestamp(data.get("evaluation_date"), current),
        current_sourate=parse_text(data.get("current_sourate")),
        pages_memorized=max(0, parse_int(data.get("pages_memorized"))),
        verses_memorized=max(0, parse_int(data.get("verses_memorized"))),
        memorization_status=memorization_status or MemorizationStatus.IN_PROGRESS,
        grades=_grades(data),
        attendance_rate=min(100.0, max(0.0, attendance)) if attendance is not None else 100.0,
        student_behavior=behavior or StudentBehavior.GOOD,
        created_at=parse_timestamp(data.get("created_at"), current),
        teacher_comment=parse_text(data.get("teacher_comment")),
        next_month_objective=parse_text(data.get("next_month_objective")),
        difficulties=parse_text(data.get("difficulties")),
        strengths=parse_text(data.get("strengths")),
        is_validated=parse_bool(data.get("is_validated")),
    )
