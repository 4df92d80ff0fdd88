import json

import pytest

from school_views.cli import main, parse_selectors
from school_views.errors import ConfigurationError


@pytest.fixture
def payments_file(tmp_path):
    path = tmp_path / "payments.json"
    path.write_text(
        json.dumps(
            {
                "payments": [
                    {"id": "p1", "amount": 1000, "amount_due": 1000, "student": {"full_name": "Awa Diallo"}},
                    {"id": "p2", "amount": 200, "amount_due": 1000, "student": {"full_name": "Moussa Bah"}},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_parse_selectors():
    assert parse_selectors(["status=paid", " period = July 2025 "]) == {"status": "paid", "period": "July 2025"}


def test_parse_selectors_rejects_bare_words():
    with pytest.raises(ConfigurationError):
        parse_selectors(["paid"])


def test_main_prints_summary(payments_file, capsys):
    assert main(["payments", str(payments_file), "--filter", "status=paid"]) == 0

    out = capsys.readouterr().out
    assert "View Summary" in out
    assert "Loaded records: 2" in out
    assert "Matching records: 1" in out
    assert "Awa Diallo" in out
    assert "Moussa Bah" not in out


def test_main_exports_all_matching_rows(payments_file, tmp_path):
    target = tmp_path / "out.csv"

    assert main(["payments", str(payments_file), "--sort", "amount", "--order", "asc", "--export", str(target)]) == 0

    lines = target.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    assert "Moussa Bah" in lines[1]


def test_main_reports_load_failure(tmp_path, capsys):
    assert main(["payments", str(tmp_path / "missing.json")]) == 1
    assert "Load failed" in capsys.readouterr().err


def test_main_rejects_unknown_selector(payments_file, capsys):
    assert main(["payments", str(payments_file), "--filter", "colour=red"]) == 2
    assert "Invalid request" in capsys.readouterr().err


def test_main_rejects_unknown_export_format(payments_file, tmp_path):
    assert main(["payments", str(payments_file), "--export", str(tmp_path / "out.pdf")]) == 2
