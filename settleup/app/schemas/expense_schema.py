"""
schemas/expense_schema.py — Marshmallow schemas for expense documents and the
split calculator endpoint.

Two kinds of schema live here:
  - Store document schemas (camelCase keys, lenient). Expense documents come
    from a loosely-typed document store and may be legacy or partially
    written. `paidBy` / `splits` default to None, unknown keys are dropped,
    and load_expense_records() skips a document that still fails to load
    instead of failing the whole request.
  - Request schemas (snake_case keys, strict). A bad request body is a 400.

Validation responsibility:
  - This file: field types, enum values, positive totals, equal-split
    participant presence.
  - services/split_calculator.py: SPLIT_SUM_MISMATCH, PERCENTAGE_SUM_MISMATCH,
    ZERO_TOTAL_SHARES, MISSING_SPLIT_INPUT (need arithmetic over the inputs).

IMPORTANT: Inherits from marshmallow.Schema directly.
"""

from __future__ import annotations

import logging
from typing import Iterable

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    post_load,
    validate,
    validates_schema,
)

from settleup.app.errors import ErrorCode
from settleup.app.models.expense import (
    UNKNOWN_NAME,
    ExpenseRecord,
    ExpenseSplit,
    PayerInfo,
    SplitParticipant,
    SplitType,
)


logger = logging.getLogger(__name__)


# ── Store documents ────────────────────────────────────────────────────────

class PayerEntrySchema(Schema):
    """One `paidBy` entry: {"userId": "u1", "amount": 10000}."""

    class Meta:
        unknown = EXCLUDE

    user_id = fields.Str(required=True, data_key="userId")
    amount  = fields.Int(required=True, strict=True)

    @post_load
    def make_payer(self, data: dict, **kwargs) -> PayerInfo:
        return PayerInfo(**data)


class SplitEntrySchema(Schema):
    """One `splits` entry: {"userId": "u2", "amount": 5000, "displayName": "Bob"}."""

    class Meta:
        unknown = EXCLUDE

    user_id      = fields.Str(required=True, data_key="userId")
    amount       = fields.Int(required=True, strict=True)
    display_name = fields.Str(load_default=UNKNOWN_NAME, data_key="displayName")

    @post_load
    def make_split(self, data: dict, **kwargs) -> ExpenseSplit:
        return ExpenseSplit(**data)


class ExpenseRecordSchema(Schema):
    """
    An expense document as stored. Only the fields balances depend on are read.

    A missing or null `paidBy` / `splits` loads as None; the aggregator treats
    such a record as contributing nothing.
    `id` is carried as-is; legacy documents use numeric ids.
    """

    class Meta:
        unknown = EXCLUDE

    id      = fields.Raw(load_default=None, allow_none=True)
    paid_by = fields.List(
        fields.Nested(PayerEntrySchema),
        data_key="paidBy",
        load_default=None,
        allow_none=True,
    )
    splits  = fields.List(
        fields.Nested(SplitEntrySchema),
        load_default=None,
        allow_none=True,
    )

    @post_load
    def make_record(self, data: dict, **kwargs) -> ExpenseRecord:
        paid_by = data["paid_by"]
        splits = data["splits"]
        return ExpenseRecord(
            paid_by=tuple(paid_by) if paid_by is not None else None,
            splits=tuple(splits) if splits is not None else None,
            id=data["id"],
        )


def load_expense_records(documents: Iterable | None) -> list[ExpenseRecord]:
    """
    Loads expense documents leniently.

    A document that cannot be loaded (not an object, entry without userId,
    non-integer amount) is logged and skipped: it contributes nothing to
    balances, exactly like a document with no payer or split list.
    """
    schema = ExpenseRecordSchema()
    records: list[ExpenseRecord] = []

    for index, document in enumerate(documents or []):
        try:
            records.append(schema.load(document))
        except ValidationError as error:
            doc_id = document.get("id", index) if isinstance(document, dict) else index
            logger.warning(
                "Skipping malformed expense document %s: %s", doc_id, error.messages,
            )
    return records


# ── Split calculator request ───────────────────────────────────────────────

def _validate_total(value: int) -> None:
    if value <= 0:
        raise ValidationError(ErrorCode.INVALID_AMOUNT)


class ParticipantSchema(Schema):

    user_id      = fields.Str(required=True, validate=validate.Length(min=1))
    display_name = fields.Str(load_default=UNKNOWN_NAME)

    @post_load
    def make_participant(self, data: dict, **kwargs) -> SplitParticipant:
        return SplitParticipant(**data)


class SplitRequestSchema(Schema):
    """
    POST /expenses/split

    Field rules:
      total_amount  : required, int paisa, > 0 (INVALID_AMOUNT)
      split_type    : required, one of equal|exact|percentage|shares
                      (INVALID_SPLIT_TYPE)
      participants  : list of {user_id, display_name}; at least one for equal
      exact_amounts : {user_id: int paisa}        — exact splits
      percentages   : {user_id: Decimal 0..100}   — percentage splits
      shares        : {user_id: int >= 0}         — shares splits

    Whether the per-type map is present and adds up is checked in
    services/split_calculator.py, not here.
    """

    total_amount  = fields.Int(required=True, strict=True, validate=_validate_total)
    split_type    = fields.Str(
        required=True,
        validate=validate.OneOf(
            [t.value for t in SplitType],
            error=ErrorCode.INVALID_SPLIT_TYPE,
        ),
    )
    participants  = fields.List(fields.Nested(ParticipantSchema), load_default=list)
    exact_amounts = fields.Dict(
        keys=fields.Str(),
        values=fields.Int(strict=True, validate=validate.Range(min=0)),
        load_default=None,
    )
    percentages   = fields.Dict(
        keys=fields.Str(),
        values=fields.Decimal(validate=validate.Range(min=0, max=100)),
        load_default=None,
    )
    shares        = fields.Dict(
        keys=fields.Str(),
        values=fields.Int(strict=True, validate=validate.Range(min=0)),
        load_default=None,
    )

    @validates_schema
    def validate_equal_participants(self, data: dict, **kwargs) -> None:
        if data.get("split_type") == SplitType.EQUAL.value and not data.get("participants"):
            raise ValidationError(
                "At least one participant is required for an equal split.",
                field_name="participants",
            )

    @post_load
    def coerce_split_type(self, data: dict, **kwargs) -> dict:
        data["split_type"] = SplitType(data["split_type"])
        return data
