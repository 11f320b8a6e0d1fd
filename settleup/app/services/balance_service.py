"""
services/balance_service.py — Builds the response payloads for the balance
and settlement endpoints on top of services/debt_simplifier.py.

Layer rules:
  - No Flask imports. Receives already-validated values from the route.
  - Returns (data, warnings) tuples of plain dicts and lists.
  - Never re-implements balance arithmetic; everything numeric comes from
    debt_simplifier.

Non-zero-sum input:
  debt_simplifier stays silent when balances do not sum to zero and simply
  leaves the unmatched remainder unsettled. This layer is where that case is
  surfaced: the payload is still returned, with a NON_ZERO_BALANCE_SUM
  warning carrying the sum and the residual left unsettled.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from settleup.app.errors import WarningCode
from settleup.app.models.expense import ExpenseRecord
from settleup.app.models.settlement import SettlementRecord
from settleup.app.services import debt_simplifier


logger = logging.getLogger(__name__)


def _balance_warnings(balances: Mapping[str, int]) -> list[dict]:
    total = debt_simplifier.balance_sum(balances)
    if total == 0:
        return []

    residual = debt_simplifier.unsettled_residual(balances)
    logger.warning(
        "Balances do not sum to zero: sum=%d unsettled=%d", total, residual,
    )
    return [{
        "code": WarningCode.NON_ZERO_BALANCE_SUM,
        "message": (
            f"Balances sum to {total} instead of 0. "
            f"{residual} will be left unsettled by the suggested transfers."
        ),
        "balance_sum": total,
        "unsettled": residual,
    }]


def get_balance_response(
        expenses: Sequence[ExpenseRecord],
        settlements: Sequence[SettlementRecord],
        display_names: Mapping[str, str],
) -> tuple[dict, list[dict]]:
    """
    Payload for POST /balances: per-member balances, simplified debts and
    the balance sum (0 for any consistent set of records).
    """
    balances = debt_simplifier.aggregate_balances(expenses, settlements)
    summary = debt_simplifier.balance_summary(balances, display_names)
    simplified = debt_simplifier.simplify(balances, display_names)

    data = {
        "balances": [b.to_dict() for b in summary],
        "simplified_debts": [d.to_dict() for d in simplified],
        "balance_sum": debt_simplifier.balance_sum(balances),
    }
    return data, _balance_warnings(balances)


def get_simplify_response(
        balances: Mapping[str, int],
        display_names: Mapping[str, str],
) -> tuple[dict, list[dict]]:
    """Payload for POST /settlements/simplify."""
    simplified = debt_simplifier.simplify(balances, display_names)
    data = {
        "simplified_debts": [d.to_dict() for d in simplified],
        "transfer_count": len(simplified),
    }
    return data, _balance_warnings(balances)


def get_explanation_response(
        balances: Mapping[str, int],
        display_names: Mapping[str, str],
        currency: str,
) -> tuple[dict, list[dict]]:
    """Payload for POST /settlements/explanation."""
    steps = debt_simplifier.generate_explanation(balances, display_names, currency)
    data = {
        "currency": currency,
        "steps": [s.to_dict() for s in steps],
    }
    return data, _balance_warnings(balances)


def get_biometric_response(amount: int, threshold: int) -> dict:
    """Payload for POST /settlements/biometric-check."""
    return {
        "amount": amount,
        "threshold": threshold,
        "requires_biometric": debt_simplifier.requires_biometric(amount, threshold),
    }
