"""
routes/balances.py — Balance route handlers.

Layer rules:
  - Parse and validate the body, call ONE service, return envelope.
  - No business logic. No arithmetic on balances.

Endpoints (base url_prefix=/api/v1):
  POST /balances  → 200  balances derived from raw expense/settlement
                         documents, plus simplified debts and balance_sum
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from settleup.app.schemas.balance_schema import AggregateRequestSchema
from settleup.app.services import balance_service

balances_bp = Blueprint("balances", __name__)


@balances_bp.route("/balances", methods=["POST"])
def aggregate_balances():
    """
    POST /balances

    Body:
      {"expenses": [...], "settlements": [...], "display_names": {...}}

    Expense and settlement entries use the document store's camelCase shape.
    Malformed documents are skipped (and logged), never rejected. Only
    settlements with status "confirmed" move balances.
    """
    data = AggregateRequestSchema().load(request.get_json(force=True, silent=True) or {})
    result, warnings = balance_service.get_balance_response(
        expenses=data["expenses"],
        settlements=data["settlements"],
        display_names=data["display_names"],
    )
    return jsonify({"data": result, "warnings": warnings}), 200
