"""Record sources backed by in-memory data, JSON exports and spreadsheets."""
from __future__ import annotations

import json
import logging
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from school_views.domain.repositories import RawRecord, RecordSource
from school_views.errors import LoadError
from school_views.infrastructure.parsing.utils import ensure_bytes

logger = logging.getLogger(__name__)

# Keys under which API list responses carry their records.
ENVELOPE_KEYS = ("payments", "evaluations", "records", "results", "data")


def unwrap_records(payload: Any) -> list[RawRecord]:
    """Accept a bare list or an API envelope such as ``{"payments": [...]}``."""
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        for key in ENVELOPE_KEYS:
            if isinstance(payload.get(key), list):
                items = payload[key]
                break
        else:
            raise LoadError(f"No record list found under any of {ENVELOPE_KEYS}")
    else:
        raise LoadError(f"Expected a list or an object, got {type(payload).__name__}")
    return [item if isinstance(item, dict) else {} for item in items]


class InMemoryRecordSource(RecordSource):
    def __init__(self, records: Sequence[RawRecord]) -> None:
        self._records = list(records)

    def fetch_all(self) -> Sequence[RawRecord]:
        return list(self._records)


class JsonFileRecordSource(RecordSource):
    def __init__(self, source: BytesIO | Path | bytes | str) -> None:
        self._source = Path(source) if isinstance(source, str) else source

    def fetch_all(self) -> Sequence[RawRecord]:
        try:
            raw_bytes = ensure_bytes(self._source)
            payload = json.loads(raw_bytes.decode("utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise LoadError(f"Cannot read JSON records: {exc}") from exc
        records = unwrap_records(payload)
        logger.debug("Loaded %d raw records from JSON", len(records))
        return records


def unflatten_row(row: dict[str, Any]) -> dict[str, Any]:
    """Turn dotted column names (``student.full_name``) into nested dicts."""
    nested: dict[str, Any] = {}
    for column, value in row.items():
        if isinstance(value, float) and pd.isna(value):
            value = None
        parts = str(column).strip().split(".")
        target = nested
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[parts[-1]] = value
    return nested


class SheetRecordSource(RecordSource):
    """Raw records exported to Excel or CSV, one row per record.

    Every cell is read as text; the normalizers do the typing.
    """

    def __init__(self, source: Path | str, sheet_name: str | int = 0) -> None:
        self._path = Path(source)
        self._sheet_name = sheet_name

    def _read_frame(self) -> pd.DataFrame:
        suffix = self._path.suffix.lower()
        if suffix == ".csv":
            return pd.read_csv(self._path, dtype=str, keep_default_na=False)
        engine = "xlrd" if suffix == ".xls" else "openpyxl"
        return pd.read_excel(
            self._path,
            sheet_name=self._sheet_name,
            engine=engine,
            dtype=str,
            keep_default_na=False,
        )

    def fetch_all(self) -> Sequence[RawRecord]:
        try:
            frame = self._read_frame()
        except (OSError, ValueError, ImportError, zipfile.BadZipFile) as exc:
            raise LoadError(f"Cannot read records from {self._path}: {exc}") from exc
        records = [unflatten_row(row) for row in frame.to_dict(orient="records")]
        logger.debug("Loaded %d raw records from %s", len(records), self._path.name)
        return records


def source_for_path(path: Path | str) -> RecordSource:
    candidate = Path(path)
    if candidate.suffix.lower() in {".xlsx", ".xlsm", ".xls", ".csv"}:
        return SheetRecordSource(candidate)
    return JsonFileRecordSource(candidate)
