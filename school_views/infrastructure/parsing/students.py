"""Normalization of the student object embedded in raw records."""
from __future__ import annotations

from typing import Any, Mapping

from school_views.domain.models import BoardingStatus, Student
from school_views.infrastructure.parsing.utils import (
    first_present,
    parse_bool,
    parse_int,
    parse_text,
)

PLACEHOLDER_FIRST_NAME = "Unknown"
PLACEHOLDER_LAST_NAME = "Unknown"


def _as_mapping(value: object) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _pick(data: Mapping[str, Any], flat: Mapping[str, Any], key: str, flat_key: str | None = None) -> Any:
    value = first_present(data, key)
    if value is None:
        value = first_present(flat, flat_key or key)
    return value


def normalize_student(raw: object, fallback: Mapping[str, Any] | None = None) -> Student:
    """Build a fully-shaped student.

    ``fallback`` holds flat keys from the enclosing record (``student_name``,
    ``class_name``...) used when the nested object lacks them.
    """
    data = _as_mapping(raw)
    flat = fallback or {}
    klass = _as_mapping(first_present(data, "coranic_class", "current_class", "class"))

    first_name = parse_text(data.get("first_name"), PLACEHOLDER_FIRST_NAME)
    last_name = parse_text(data.get("last_name"), PLACEHOLDER_LAST_NAME)
    full_name = parse_text(_pick(data, flat, "full_name", "student_name"), f"{first_name} {last_name}")
    status = BoardingStatus.lookup(data.get("status"))

    return Student(
        id=parse_text(_pick(data, flat, "id", "student_id")),
        student_number=parse_text(_pick(data, flat, "student_number"), "N/A"),
        first_name=first_name,
        last_name=last_name,
        full_name=full_name,
        status=status if status is not None else BoardingStatus.EXTERNAL,
        is_orphan=parse_bool(data.get("is_orphan")),
        age=max(0, parse_int(_pick(data, flat, "age"))),
        class_id=parse_text(first_present(klass, "id") or _pick(data, flat, "class_id")),
        class_name=parse_text(first_present(klass, "name") or _pick(data, flat, "class_name")),
        guardian_name=parse_text(data.get("guardian_name")),
        guardian_phone=parse_text(data.get("guardian_phone")),
    )
