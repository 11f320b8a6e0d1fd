"""
tests/integration/test_settlements.py — Integration tests for the debt
simplification endpoints.

Endpoints covered:
  POST /api/v1/settlements/simplify         → 200 / 400
  POST /api/v1/settlements/explanation      → 200 / 400
  POST /api/v1/settlements/biometric-check  → 200 / 400

Properties verified:
  - Transfers are returned largest-first with display names attached
  - Non-zero-sum balances still return 200 with a NON_ZERO_BALANCE_SUM warning
  - Explanation steps are serialised in order, with the default currency
    taken from config when the request omits one
  - Biometric threshold is inclusive and defaults to the configured value
  - Float amounts, missing fields and unsupported currencies are 400s
"""

from __future__ import annotations

import pytest


_NAMES = {"A": "Asha", "B": "Ravi", "C": "Meera", "D": "Kabir"}


# ═══════════════════════════════════════════════════════════════════════════
# /simplify
# ═══════════════════════════════════════════════════════════════════════════

class TestSimplify:

    def test_two_person(self, post_json):
        resp = post_json("/settlements/simplify", {
            "balances": {"A": -10000, "B": 10000},
            "display_names": _NAMES,
        })

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["data"]["transfer_count"] == 1
        assert body["data"]["simplified_debts"] == [{
            "from_user_id": "A",
            "from_name": "Asha",
            "to_user_id": "B",
            "to_name": "Ravi",
            "amount": 10000,
        }]
        assert body["warnings"] == []

    def test_four_person_chain(self, post_json):
        resp = post_json("/settlements/simplify", {
            "balances": {"A": 30000, "B": 10000, "C": -25000, "D": -15000},
            "display_names": _NAMES,
        })

        debts = resp.get_json()["data"]["simplified_debts"]
        assert [(d["from_user_id"], d["to_user_id"], d["amount"]) for d in debts] == [
            ("C", "A", 25000),
            ("D", "B", 10000),
            ("D", "A", 5000),
        ]

    def test_missing_names_become_unknown(self, post_json):
        resp = post_json("/settlements/simplify", {"balances": {"X": -1, "Y": 1}})

        debt = resp.get_json()["data"]["simplified_debts"][0]
        assert debt["from_name"] == "Unknown"
        assert debt["to_name"] == "Unknown"

    def test_all_settled(self, post_json):
        resp = post_json("/settlements/simplify", {"balances": {"A": 0, "B": 0}})

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"simplified_debts": [], "transfer_count": 0}

    def test_non_zero_sum_returns_warning(self, post_json):
        resp = post_json("/settlements/simplify", {"balances": {"A": 10000, "B": -4000}})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["data"]["simplified_debts"][0]["amount"] == 4000
        assert body["warnings"][0]["code"] == "NON_ZERO_BALANCE_SUM"
        assert body["warnings"][0]["unsettled"] == 6000

    def test_missing_balances(self, post_json):
        resp = post_json("/settlements/simplify", {"display_names": _NAMES})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "MISSING_FIELD"
        assert error["field"] == "balances"

    def test_float_balance_rejected(self, post_json):
        resp = post_json("/settlements/simplify", {"balances": {"A": -100.5, "B": 100.5}})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_FIELD"
        assert resp.get_json()["error"]["field"] == "balances"

    def test_non_json_body(self, client):
        resp = client.post(
            "/api/v1/settlements/simplify",
            data="not json",
            content_type="text/plain",
        )

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "MISSING_FIELD"


# ═══════════════════════════════════════════════════════════════════════════
# /explanation
# ═══════════════════════════════════════════════════════════════════════════

class TestExplanation:

    def test_steps_in_order(self, post_json):
        resp = post_json("/settlements/explanation", {
            "balances": {"A": 50000, "B": -30000, "C": -20000},
            "display_names": _NAMES,
        })

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["currency"] == "INR"
        assert [s["title"] for s in data["steps"]] == [
            "Original Balances",
            "Categorize Members",
            "Step 1: Ravi pays Asha",
            "Step 2: Meera pays Asha",
            "Result",
        ]
        assert data["steps"][0]["settlement"] is None
        assert data["steps"][2]["settlement"]["amount"] == 30000
        assert data["steps"][-1]["balances"] == {"A": 0, "B": 0, "C": 0}

    def test_transfers_match_simplify(self, post_json):
        balances = {"A": 30000, "B": 10000, "C": -25000, "D": -15000}

        simplified = post_json("/settlements/simplify", {"balances": balances}).get_json()
        explained = post_json("/settlements/explanation", {"balances": balances}).get_json()

        transfers = [s["settlement"] for s in explained["data"]["steps"] if s["settlement"]]
        assert transfers == simplified["data"]["simplified_debts"]

    def test_currency_formatting(self, post_json):
        resp = post_json("/settlements/explanation", {
            "balances": {"A": -123456, "B": 123456},
            "currency": "usd",
        })

        data = resp.get_json()["data"]
        assert data["currency"] == "USD"
        assert "$1,234.56" in data["steps"][0]["description"]

    def test_unsupported_currency(self, post_json):
        resp = post_json("/settlements/explanation", {"balances": {}, "currency": "XYZ"})

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "UNSUPPORTED_CURRENCY"
        assert error["field"] == "currency"

    def test_non_zero_sum_warning(self, post_json):
        resp = post_json("/settlements/explanation", {"balances": {"A": 100}})

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["warnings"][0]["code"] == "NON_ZERO_BALANCE_SUM"
        assert "(should be 0)" in body["data"]["steps"][0]["description"]


# ═══════════════════════════════════════════════════════════════════════════
# /biometric-check
# ═══════════════════════════════════════════════════════════════════════════

class TestBiometricCheck:

    @pytest.mark.parametrize("amount, expected", [
        (499999, False),
        (500000, True),
        (750000, True),
    ])
    def test_default_threshold(self, post_json, amount, expected):
        resp = post_json("/settlements/biometric-check", {"amount": amount})

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {
            "amount": amount,
            "threshold": 500000,
            "requires_biometric": expected,
        }

    def test_custom_threshold(self, post_json):
        resp = post_json("/settlements/biometric-check", {"amount": 1000, "threshold": 1000})
        assert resp.get_json()["data"]["requires_biometric"] is True

    def test_negative_amount(self, post_json):
        resp = post_json("/settlements/biometric-check", {"amount": -5})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_AMOUNT"

    def test_missing_amount(self, post_json):
        resp = post_json("/settlements/biometric-check", {})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "MISSING_FIELD"
