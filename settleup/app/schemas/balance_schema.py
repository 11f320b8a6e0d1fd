"""
schemas/balance_schema.py — Request schema for POST /balances.

The envelope is strict (expenses/settlements must be arrays, display_names
an object); the documents inside are loaded leniently by the store document
loaders, so one malformed legacy document never fails the request.

IMPORTANT: Inherits from marshmallow.Schema directly.
"""

from __future__ import annotations

from marshmallow import Schema, fields, post_load

from settleup.app.schemas.expense_schema import load_expense_records
from settleup.app.schemas.settlement_schema import load_settlement_records


class AggregateRequestSchema(Schema):
    """
    expenses      : array of expense documents   (camelCase store shape)
    settlements   : array of settlement documents (camelCase store shape)
    display_names : optional {user_id: name}
    """

    expenses      = fields.List(fields.Raw(), load_default=list)
    settlements   = fields.List(fields.Raw(), load_default=list)
    display_names = fields.Dict(keys=fields.Str(), values=fields.Str(), load_default=dict)

    @post_load
    def load_records(self, data: dict, **kwargs) -> dict:
        data["expenses"] = load_expense_records(data["expenses"])
        data["settlements"] = load_settlement_records(data["settlements"])
        return data
