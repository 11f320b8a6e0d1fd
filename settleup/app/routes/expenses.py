"""
routes/expenses.py — Expense split route handlers.

Layer rules:
  - Parse, validate, call ONE service, return envelope.
  - AppError from the split calculator (422) propagates to the global handler.

Endpoints (base url_prefix=/api/v1/expenses):
  POST /split  → 200  per-participant split of one expense total
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from settleup.app.schemas.expense_schema import SplitRequestSchema
from settleup.app.services import split_calculator

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.route("/split", methods=["POST"])
def split_expense():
    """
    POST /expenses/split

    Returns the splits in participant / input order. Their amounts always sum
    to total_amount.
    """
    data = SplitRequestSchema().load(request.get_json(force=True, silent=True) or {})
    splits = split_calculator.calculate(
        total=data["total_amount"],
        split_type=data["split_type"],
        participants=data["participants"],
        exact_amounts=data["exact_amounts"],
        percentages=data["percentages"],
        shares=data["shares"],
    )
    return jsonify({
        "data": {
            "total_amount": data["total_amount"],
            "split_type": data["split_type"].value,
            "splits": [s.to_dict() for s in splits],
        },
        "warnings": [],
    }), 200
