"""
tests/unit/test_explain_cli.py — Unit tests for the settleup-explain walkthrough.

Output is captured with a recording rich Console; input files live in tmp_path.
"""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from settleup.utils.explain import THEME, main, resolve_input, run


def _console() -> Console:
    return Console(theme=THEME, record=True, width=100, highlight=False)


def _write(tmp_path, payload) -> Path:
    path = tmp_path / "group.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


# ── resolve_input ──────────────────────────────────────────────────────────

def test_resolve_balances_payload():
    balances, names, currency = resolve_input({
        "balances": {"A": -100, "B": 100},
        "display_names": {"A": "Asha"},
        "currency": "usd",
    })

    assert balances == {"A": -100, "B": 100}
    assert names == {"A": "Asha"}
    assert currency == "USD"


def test_resolve_documents_payload_aggregates():
    balances, names, currency = resolve_input({
        "expenses": [{
            "paidBy": [{"userId": "A", "amount": 10000}],
            "splits": [{"userId": "A", "amount": 5000}, {"userId": "B", "amount": 5000}],
        }],
        "settlements": [],
    })

    assert balances == {"A": 5000, "B": -5000}
    assert names == {}
    assert currency is None


# ── run ────────────────────────────────────────────────────────────────────

def test_run_renders_steps_and_table(tmp_path):
    path = _write(tmp_path, {
        "balances": {"A": -10000, "B": 10000},
        "display_names": {"A": "Asha", "B": "Ravi"},
    })
    console = _console()

    assert run(path, console=console) == 0

    out = console.export_text()
    assert "Original Balances" in out
    assert "Step 1: Asha pays Ravi" in out
    assert "Suggested Payments" in out
    assert "₹100.00" in out
    assert "left unsettled" not in out


def test_run_prints_bracketed_names_literally(tmp_path):
    path = _write(tmp_path, {
        "balances": {"A": -100, "B": 100},
        "display_names": {"A": "Bob [/x]", "B": "[red]Ann"},
    })
    console = _console()

    assert run(path, console=console) == 0

    out = console.export_text()
    assert "Step 1: Bob [/x] pays [red]Ann" in out
    assert "Bob [/x] owes ₹1.00" in out
    assert out.count("[red]Ann") >= 3


def test_run_currency_override(tmp_path):
    path = _write(tmp_path, {"balances": {"A": -10000, "B": 10000}, "currency": "INR"})
    console = _console()

    assert run(path, currency="usd", console=console) == 0
    assert "$100.00" in console.export_text()


def test_run_all_settled(tmp_path):
    path = _write(tmp_path, {"balances": {"A": 0}})
    console = _console()

    assert run(path, console=console) == 0

    out = console.export_text()
    assert "Everyone is already settled up" in out
    assert "All settled" in out


def test_run_reports_non_zero_sum(tmp_path):
    path = _write(tmp_path, {"balances": {"A": 10000, "B": -4000}})
    console = _console()

    assert run(path, console=console) == 0
    assert "₹60.00 is left unsettled" in console.export_text()


def test_run_missing_file(tmp_path):
    console = _console()
    assert run(tmp_path / "missing.json", console=console) == 1
    assert "Cannot read" in console.export_text()


def test_run_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    console = _console()

    assert run(path, console=console) == 1


def test_run_rejects_non_object(tmp_path):
    path = _write(tmp_path, [1, 2, 3])
    console = _console()

    assert run(path, console=console) == 1
    assert "JSON object" in console.export_text()


def test_run_rejects_float_balances(tmp_path):
    path = _write(tmp_path, {"balances": {"A": 10.5}})
    console = _console()

    assert run(path, console=console) == 1
    assert "Invalid input" in console.export_text()


def test_run_rejects_unsupported_currency(tmp_path):
    path = _write(tmp_path, {"balances": {"A": 0}})
    console = _console()

    assert run(path, currency="XYZ", console=console) == 1
    assert "Unsupported currency XYZ" in console.export_text()


def test_main_parses_arguments(tmp_path, capsys):
    path = _write(tmp_path, {"balances": {"A": -100, "B": 100}})

    assert main([str(path), "--currency", "GBP"]) == 0
    assert "£1.00" in capsys.readouterr().out
