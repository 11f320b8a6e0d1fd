"""
models/settlement.py — Settlement records and debt-simplification output types.

No business logic. No imports from services or routes.

Equality rules:
  - SimplifiedDebt compares on (from_user_id, to_user_id, amount). Display
    names are informational only and never take part in matching or dedup.
  - SimplificationStep compares on (title, description, balances, settlement).
  - UserBalance compares on (user_id, balance).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


# ── Enum Definitions ───────────────────────────────────────────────────────

class SettlementStatus(str, enum.Enum):
    """Only CONFIRMED settlements move balances."""
    PENDING   = "pending"
    CONFIRMED = "confirmed"
    REJECTED  = "rejected"


# ── Aggregation input ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class SettlementRecord:
    """A recorded real-world payment: from_user_id paid to_user_id `amount` paisa."""

    from_user_id: str
    to_user_id:   str
    amount:       int
    status:       SettlementStatus = SettlementStatus.PENDING
    id:           str | int | None = field(default=None, compare=False)

    @property
    def is_confirmed(self) -> bool:
        return self.status == SettlementStatus.CONFIRMED


# ── Engine output ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SimplifiedDebt:
    """from_user pays to_user `amount` paisa."""

    from_user_id:   str
    from_user_name: str = field(compare=False)
    to_user_id:     str
    to_user_name:   str = field(compare=False)
    amount:         int

    def to_dict(self) -> dict:
        return {
            "from_user_id": self.from_user_id,
            "from_name":    self.from_user_name,
            "to_user_id":   self.to_user_id,
            "to_name":      self.to_user_name,
            "amount":       self.amount,
        }


@dataclass(frozen=True)
class SimplificationStep:
    """
    One narrated step of the simplification walkthrough.

    `balances` is a read-only snapshot of the remaining balances at this point.
    `settlement` is None for narrative-only steps (original balances,
    categorisation, result).
    """

    title:         str
    description:   str
    balances:      Mapping[str, int]
    display_names: Mapping[str, str] = field(compare=False)
    settlement:    SimplifiedDebt | None = None

    def __post_init__(self) -> None:
        # Snapshots are frozen copies so later steps cannot rewrite earlier ones.
        object.__setattr__(self, "balances", MappingProxyType(dict(self.balances)))
        object.__setattr__(self, "display_names", MappingProxyType(dict(self.display_names)))

    def to_dict(self) -> dict:
        return {
            "title":       self.title,
            "description": self.description,
            "balances":    dict(self.balances),
            "settlement":  self.settlement.to_dict() if self.settlement else None,
        }


@dataclass(frozen=True)
class UserBalance:
    """Per-member balance line for display. Positive = owed money."""

    user_id:      str
    display_name: str = field(compare=False)
    balance:      int

    @property
    def is_owed(self) -> bool:
        return self.balance > 0

    @property
    def owes(self) -> bool:
        return self.balance < 0

    @property
    def is_settled(self) -> bool:
        return self.balance == 0

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "name":    self.display_name,
            "balance": self.balance,
        }
