"""
models/expense.py — Expense value objects consumed by the balance aggregator
and produced by the split calculator.

No business logic. No imports from services or routes.

Key design points:
  - Every amount is an int in minor currency units (paisa). Never float.
  - All objects are frozen: a service never mutates a record it was given.
  - `ExpenseRecord.paid_by` / `ExpenseRecord.splits` may be None. Records come
    from a loosely-typed document store and legacy documents can be partially
    written; an absent list contributes nothing to balances.
  - SplitType is a Python enum so schemas and services can share it without
    repeating string literals.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal


UNKNOWN_NAME = "Unknown"


# ── Enum Definitions ───────────────────────────────────────────────────────

class SplitType(str, enum.Enum):
    EQUAL      = "equal"
    EXACT      = "exact"
    PERCENTAGE = "percentage"
    SHARES     = "shares"


# ── Value objects ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PayerInfo:
    """One entry in an expense's `paidBy` list."""

    user_id: str
    amount:  int

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "amount": self.amount}


@dataclass(frozen=True)
class ExpenseSplit:
    """
    One participant's owed share of an expense.

    `percentage` / `shares` are only populated by the matching split type and
    are informational; `amount` is the only field balances are derived from.
    """

    user_id:      str
    amount:       int
    display_name: str = UNKNOWN_NAME
    percentage:   Decimal | None = None
    shares:       int | None = None

    def to_dict(self) -> dict:
        payload = {
            "user_id":      self.user_id,
            "display_name": self.display_name,
            "amount":       self.amount,
        }
        if self.percentage is not None:
            payload["percentage"] = str(self.percentage)
        if self.shares is not None:
            payload["shares"] = self.shares
        return payload


@dataclass(frozen=True)
class ExpenseRecord:
    """Aggregation input: who fronted money and who owes what for one expense."""

    paid_by: tuple[PayerInfo, ...] | None = None
    splits:  tuple[ExpenseSplit, ...] | None = None
    id:      str | int | None = field(default=None, compare=False)


@dataclass(frozen=True)
class SplitParticipant:
    user_id:      str
    display_name: str = UNKNOWN_NAME
