import json

import pandas as pd
import pytest

from school_views.errors import LoadError
from school_views.infrastructure.repositories.file_sources import (
    JsonFileRecordSource,
    SheetRecordSource,
    source_for_path,
    unflatten_row,
    unwrap_records,
)


def test_unwrap_accepts_bare_list_and_envelopes():
    assert unwrap_records([{"id": 1}]) == [{"id": 1}]
    assert unwrap_records({"payments": [{"id": 2}]}) == [{"id": 2}]
    assert unwrap_records({"count": 1, "results": [{"id": 3}]}) == [{"id": 3}]


def test_unwrap_replaces_non_objects_with_empty_records():
    assert unwrap_records([{"id": 1}, "junk", None]) == [{"id": 1}, {}, {}]


@pytest.mark.parametrize("payload", [{"total": 3}, 42, "text"])
def test_unwrap_rejects_unknown_shapes(payload):
    with pytest.raises(LoadError):
        unwrap_records(payload)


def test_json_source_reads_file(tmp_path):
    path = tmp_path / "payments.json"
    path.write_text(json.dumps({"data": [{"id": "p1", "amount": "1500"}]}), encoding="utf-8")

    assert JsonFileRecordSource(path).fetch_all() == [{"id": "p1", "amount": "1500"}]


def test_json_source_accepts_raw_bytes():
    assert JsonFileRecordSource(b'[{"id": "p1"}]').fetch_all() == [{"id": "p1"}]


def test_invalid_json_is_a_load_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(LoadError):
        JsonFileRecordSource(path).fetch_all()


def test_missing_file_is_a_load_error(tmp_path):
    with pytest.raises(LoadError):
        JsonFileRecordSource(tmp_path / "absent.json").fetch_all()


def test_unflatten_row_nests_dotted_columns():
    row = {"id": "p1", "student.full_name": "Awa Diallo", "student.coranic_class.name": "Hifz 1"}

    assert unflatten_row(row) == {
        "id": "p1",
        "student": {"full_name": "Awa Diallo", "coranic_class": {"name": "Hifz 1"}},
    }


def test_csv_source_reads_text_cells(tmp_path):
    path = tmp_path / "payments.csv"
    path.write_text("id,amount,student.full_name\np1,1500,Awa Diallo\np2,,\n", encoding="utf-8")

    records = SheetRecordSource(path).fetch_all()

    assert records[0] == {"id": "p1", "amount": "1500", "student": {"full_name": "Awa Diallo"}}
    assert records[1]["amount"] == ""


def test_xlsx_source_reads_first_sheet(tmp_path):
    path = tmp_path / "evaluations.xlsx"
    pd.DataFrame([{"id": "e1", "memorization_grade": 17, "student.full_name": "Bah"}]).to_excel(
        path, index=False, engine="openpyxl"
    )

    records = source_for_path(path).fetch_all()

    assert records == [{"id": "e1", "memorization_grade": "17", "student": {"full_name": "Bah"}}]


def test_unreadable_sheet_is_a_load_error(tmp_path):
    path = tmp_path / "corrupt.xlsx"
    path.write_bytes(b"not a workbook")

    with pytest.raises(LoadError):
        SheetRecordSource(path).fetch_all()


def test_source_for_path_picks_by_suffix(tmp_path):
    assert isinstance(source_for_path(tmp_path / "a.csv"), SheetRecordSource)
    assert isinstance(source_for_path(tmp_path / "a.xls"), SheetRecordSource)
    assert isinstance(source_for_path(tmp_path / "a.json"), JsonFileRecordSource)
