"""
routes/settlements.py — Debt simplification route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - No business logic.

Non-zero-sum balances are NOT rejected. The response carries the transfers
the greedy matcher produced plus a NON_ZERO_BALANCE_SUM warning. Status
remains 200.

Endpoints (base url_prefix=/api/v1/settlements):
  POST /simplify         → 200  minimal transfer list
  POST /explanation      → 200  narrated simplification steps
  POST /biometric-check  → 200  whether a settlement amount needs step-up auth
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from settleup.app.schemas.settlement_schema import (
    BiometricCheckSchema,
    ExplanationRequestSchema,
    SimplifyRequestSchema,
)
from settleup.app.services import balance_service

settlements_bp = Blueprint("settlements", __name__)


def _json_body() -> dict:
    return request.get_json(force=True, silent=True) or {}


@settlements_bp.route("/simplify", methods=["POST"])
def simplify_debts():
    """POST /settlements/simplify — {"balances": {...}, "display_names": {...}}"""
    data = SimplifyRequestSchema().load(_json_body())
    result, warnings = balance_service.get_simplify_response(
        balances=data["balances"],
        display_names=data["display_names"],
    )
    return jsonify({"data": result, "warnings": warnings}), 200


@settlements_bp.route("/explanation", methods=["POST"])
def explain_simplification():
    """
    POST /settlements/explanation

    `currency` falls back to DEFAULT_CURRENCY from config when omitted.
    """
    data = ExplanationRequestSchema().load(_json_body())
    currency = data["currency"] or current_app.config["DEFAULT_CURRENCY"]
    result, warnings = balance_service.get_explanation_response(
        balances=data["balances"],
        display_names=data["display_names"],
        currency=currency,
    )
    return jsonify({"data": result, "warnings": warnings}), 200


@settlements_bp.route("/biometric-check", methods=["POST"])
def biometric_check():
    """
    POST /settlements/biometric-check — {"amount": 500000, "threshold": optional}

    `threshold` falls back to BIOMETRIC_THRESHOLD_PAISA from config.
    """
    data = BiometricCheckSchema().load(_json_body())
    threshold = data["threshold"] or current_app.config["BIOMETRIC_THRESHOLD_PAISA"]
    result = balance_service.get_biometric_response(data["amount"], threshold)
    return jsonify({"data": result, "warnings": []}), 200
