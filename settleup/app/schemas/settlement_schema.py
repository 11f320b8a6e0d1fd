"""
schemas/settlement_schema.py — Marshmallow schemas for settlement documents
and the simplification endpoints.

Store documents (camelCase, lenient):
  SettlementRecordSchema reads {fromUserId, toUserId, amount, status}.
  load_settlement_records() logs and skips a document it cannot load; an
  unknown status is treated as malformed, never as confirmed.

Requests (snake_case, strict):
  SimplifyRequestSchema     balances + display_names
  ExplanationRequestSchema  + currency (must be supported)
  BiometricCheckSchema      amount + optional threshold

The zero-sum check on `balances` is NOT a schema rule: non-zero-sum input is
accepted and reported as a warning by services/balance_service.py.

IMPORTANT: Inherits from marshmallow.Schema directly.
"""

from __future__ import annotations

import logging
from typing import Iterable

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from settleup.app.errors import ErrorCode
from settleup.app.models.settlement import SettlementRecord, SettlementStatus
from settleup.app.utils.currency import is_supported


logger = logging.getLogger(__name__)


# ── Store documents ────────────────────────────────────────────────────────

class SettlementRecordSchema(Schema):

    class Meta:
        unknown = EXCLUDE

    id           = fields.Raw(load_default=None, allow_none=True)
    from_user_id = fields.Str(required=True, data_key="fromUserId")
    to_user_id   = fields.Str(required=True, data_key="toUserId")
    amount       = fields.Int(required=True, strict=True)
    status       = fields.Enum(
        SettlementStatus,
        by_value=True,
        load_default=SettlementStatus.PENDING,
    )

    @post_load
    def make_record(self, data: dict, **kwargs) -> SettlementRecord:
        return SettlementRecord(**data)


def load_settlement_records(documents: Iterable | None) -> list[SettlementRecord]:
    """Loads settlement documents leniently; see load_expense_records()."""
    schema = SettlementRecordSchema()
    records: list[SettlementRecord] = []

    for index, document in enumerate(documents or []):
        try:
            records.append(schema.load(document))
        except ValidationError as error:
            doc_id = document.get("id", index) if isinstance(document, dict) else index
            logger.warning(
                "Skipping malformed settlement document %s: %s", doc_id, error.messages,
            )
    return records


# ── Requests ───────────────────────────────────────────────────────────────

def _validate_currency(value: str) -> None:
    if not is_supported(value):
        raise ValidationError(ErrorCode.UNSUPPORTED_CURRENCY)


class SimplifyRequestSchema(Schema):
    """
    POST /settlements/simplify

    balances      : required, {user_id: int paisa}. Floats are rejected.
    display_names : optional, {user_id: name}. May be sparse.
    """

    balances      = fields.Dict(
        keys=fields.Str(validate=validate.Length(min=1)),
        values=fields.Int(strict=True),
        required=True,
    )
    display_names = fields.Dict(
        keys=fields.Str(),
        values=fields.Str(),
        load_default=dict,
    )


class ExplanationRequestSchema(SimplifyRequestSchema):
    """
    POST /settlements/explanation

    currency : optional; defaults to the app's DEFAULT_CURRENCY in the route.
               Formatting only, never changes a transfer.
    """

    currency = fields.Str(load_default=None, validate=_validate_currency)

    @post_load
    def normalise_currency(self, data: dict, **kwargs) -> dict:
        if data["currency"] is not None:
            data["currency"] = data["currency"].upper()
        return data


class BiometricCheckSchema(Schema):
    """
    POST /settlements/biometric-check

    amount    : required, int paisa, >= 0
    threshold : optional, int paisa, > 0; defaults to BIOMETRIC_THRESHOLD_PAISA
    """

    amount    = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=0, error=ErrorCode.INVALID_AMOUNT),
    )
    threshold = fields.Int(
        strict=True,
        load_default=None,
        validate=validate.Range(min=1, error=ErrorCode.INVALID_AMOUNT),
    )
