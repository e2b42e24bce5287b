"""Unit tests for the print_member_status operator script."""

import importlib.util
import json
import logging
from pathlib import Path

import pytest
from libs.common.config import get_settings

SCRIPT = (
    Path(__file__).resolve().parents[2] / "scripts" / "membership" / "print_member_status.py"
)


def _load_script():
    spec = importlib.util.spec_from_file_location("print_member_status", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def script(monkeypatch):
    """Load the script with quiet logging; restore root logging afterwards."""
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("ENV_FILE", ".env.does-not-exist")
    get_settings.cache_clear()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield _load_script()
    root.handlers[:] = handlers
    root.setLevel(level)


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


@pytest.mark.unit
def test_prints_status_for_every_member(script, tmp_path, capsys):
    payments = _write(
        tmp_path,
        "payments.json",
        [
            {"MemberID": "A", "Particulars": "Monthly", "GymValidUntil": "2025-11-20"},
            {"MemberID": "B", "Particulars": "Monthly", "GymValidUntil": "2025-11-01"},
            {"MemberID": "B", "Particulars": "Coach Monthly", "CoachValidUntil": "2025-12-01"},
        ],
    )

    code = script.main(["--payments", payments, "--now", "2025-11-16T08:00:00+08:00"])

    output = json.loads(capsys.readouterr().out)
    assert code == 0
    assert sorted(output) == ["a", "b"]
    assert output["a"]["membership_state"] == "active"
    assert output["a"]["membership_end_day"] == "2025-11-20"
    assert output["b"]["membership_state"] == "expired"
    assert output["b"]["coach_active"] is True


@pytest.mark.unit
def test_single_member_with_pricing_and_member_rows(script, tmp_path, capsys):
    payments = _write(
        tmp_path,
        "payments.json",
        {"rows": [{"MemberID": "KG-0042", "Particulars": "Plan-A", "EndDate": "2026-02-01"}]},
    )
    pricing = _write(
        tmp_path, "pricing.json", [{"Particulars": "Plan-A", "Gym membership": "Yes"}]
    )
    members = _write(
        tmp_path,
        "members.json",
        {
            "doc-1": {"MemberID": "KG-0042", "Status": "expired"},
            "doc-2": {"MemberID": "KG-0043", "membershipEnd": "2026-01-01"},
        },
    )

    code = script.main(
        [
            "--payments", payments,
            "--pricing", pricing,
            "--members", members,
            "--member", "kg-0042",
            "--now", "2025-11-16T08:00:00+08:00",
        ]
    )

    output = json.loads(capsys.readouterr().out)
    assert code == 0
    assert list(output) == ["kg-0042"]
    assert output["kg-0042"]["membership_state"] == "active"
    assert output["kg-0042"]["membership_end_day"] == "2026-02-01"


@pytest.mark.unit
def test_rejects_unreadable_now(script, tmp_path):
    payments = _write(tmp_path, "payments.json", [])

    with pytest.raises(SystemExit):
        script.main(["--payments", payments, "--now", "whenever"])
