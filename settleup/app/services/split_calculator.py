"""
services/split_calculator.py — Divides one expense total among participants.

Layer rules:
  - No Flask imports. Raises AppError for rule violations; the route layer
    lets it propagate to the global error handler.
  - Amounts are ints in minor units. Percentages are Decimal, never float.

Guarantee: for every split type, sum(split.amount) == total exactly.
Rounding leftovers are assigned deterministically:
  - equal:      one extra paisa each to the first `remainder` participants
  - percentage: last participant with a non-zero percentage absorbs the
                rounding remainder
  - shares:     last participant with non-zero shares absorbs the remainder
No split amount is ever negative.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Sequence

from settleup.app.errors import AppError, ErrorCode
from settleup.app.models.expense import UNKNOWN_NAME, ExpenseSplit, SplitParticipant, SplitType


logger = logging.getLogger(__name__)

# Percentages may drift from 100 by at most this much (client-side rounding).
_PERCENTAGE_TOLERANCE = Decimal("0.01")


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _apportion(total: int, weights: Sequence[Decimal], weight_total: Decimal) -> list[int]:
    """
    Splits `total` in proportion to `weights`, rounding half up.

    The last non-zero weight takes whatever is left, and earlier amounts are
    capped at what remains, so the result sums to `total` with no negatives.
    """
    if not weights:
        return []

    remainder_index = max(
        (i for i, weight in enumerate(weights) if weight > 0),
        default=len(weights) - 1,
    )

    amounts = [0] * len(weights)
    allocated = 0
    for index, weight in enumerate(weights):
        if index == remainder_index:
            continue
        amount = _round_half_up(Decimal(total) * weight / weight_total)
        amounts[index] = min(amount, total - allocated)
        allocated += amounts[index]

    amounts[remainder_index] = total - allocated
    return amounts


# ── Split strategies ───────────────────────────────────────────────────────

def calculate_equal(
        total: int,
        participants: Sequence[SplitParticipant],
) -> list[ExpenseSplit]:
    """
    Equal split. 100 paisa among 3 -> [34, 33, 33].

    An empty participant list yields no splits.
    """
    if not participants:
        logger.warning("No participants for equal split")
        return []

    per_person, remainder = divmod(total, len(participants))
    logger.debug("Equal split calculated: per_person=%d remainder=%d", per_person, remainder)

    return [
        ExpenseSplit(
            user_id=p.user_id,
            display_name=p.display_name,
            amount=per_person + (1 if index < remainder else 0),
        )
        for index, p in enumerate(participants)
    ]


def calculate_exact(
        total: int,
        exact_amounts: Mapping[str, int],
        display_names: Mapping[str, str],
) -> list[ExpenseSplit]:
    """
    Exact split: caller supplies every share.

    Raises:
        AppError(SPLIT_SUM_MISMATCH, 422) -- shares do not add up to total.
    """
    splits = [
        ExpenseSplit(
            user_id=uid,
            display_name=display_names.get(uid, UNKNOWN_NAME),
            amount=amount,
        )
        for uid, amount in exact_amounts.items()
    ]

    allocated = sum(s.amount for s in splits)
    if allocated != total:
        logger.error(
            "Exact split validation failed: allocated=%d expected=%d", allocated, total,
        )
        raise AppError(
            ErrorCode.SPLIT_SUM_MISMATCH,
            f"Exact amounts sum ({allocated}) does not match total ({total}).",
            422,
            field="exact_amounts",
        )
    return splits


def calculate_percentage(
        total: int,
        percentages: Mapping[str, Decimal],
        display_names: Mapping[str, str],
) -> list[ExpenseSplit]:
    """
    Percentage split (0-100 per participant).

    Raises:
        AppError(PERCENTAGE_SUM_MISMATCH, 422) -- percentages do not total 100.
    """
    total_percentage = sum((Decimal(p) for p in percentages.values()), Decimal("0"))
    if abs(total_percentage - Decimal("100")) > _PERCENTAGE_TOLERANCE:
        logger.error("Percentage split validation failed: total=%s", total_percentage)
        raise AppError(
            ErrorCode.PERCENTAGE_SUM_MISMATCH,
            f"Percentages must sum to 100% (got {total_percentage}%).",
            422,
            field="percentages",
        )

    entries = [(uid, Decimal(percentage)) for uid, percentage in percentages.items()]
    amounts = _apportion(total, [p for _, p in entries], Decimal("100"))

    return [
        ExpenseSplit(
            user_id=uid,
            display_name=display_names.get(uid, UNKNOWN_NAME),
            amount=amount,
            percentage=percentage,
        )
        for (uid, percentage), amount in zip(entries, amounts)
    ]


def calculate_shares(
        total: int,
        shares: Mapping[str, int],
        display_names: Mapping[str, str],
) -> list[ExpenseSplit]:
    """
    Ratio split. {A: 2, B: 1, C: 1} -> A pays half, B and C a quarter each.

    Raises:
        AppError(ZERO_TOTAL_SHARES, 422) -- shares are present but total 0.
    """
    if not shares:
        logger.warning("No shares for shares split")
        return []

    total_shares = sum(shares.values())
    if total_shares == 0:
        raise AppError(
            ErrorCode.ZERO_TOTAL_SHARES,
            "Total shares cannot be zero.",
            422,
            field="shares",
        )

    entries = list(shares.items())
    amounts = _apportion(total, [Decimal(share) for _, share in entries], Decimal(total_shares))

    return [
        ExpenseSplit(
            user_id=uid,
            display_name=display_names.get(uid, UNKNOWN_NAME),
            amount=amount,
            shares=share,
        )
        for (uid, share), amount in zip(entries, amounts)
    ]


def validate_splits(total: int, splits: Sequence[ExpenseSplit]) -> bool:
    split_sum = sum(s.amount for s in splits)
    if split_sum != total:
        logger.warning("Split validation failed: split_sum=%d total=%d", split_sum, total)
        return False
    return True


# ── Dispatcher ─────────────────────────────────────────────────────────────

def calculate(
        total: int,
        split_type: SplitType,
        participants: Sequence[SplitParticipant],
        exact_amounts: Mapping[str, int] | None = None,
        percentages: Mapping[str, Decimal] | None = None,
        shares: Mapping[str, int] | None = None,
) -> list[ExpenseSplit]:
    """
    Splits `total` according to `split_type`.

    Display names for exact/percentage/shares splits are taken from
    `participants`; ids not listed there are shown as "Unknown".

    Raises:
        AppError(MISSING_SPLIT_INPUT, 422) -- the per-type input is missing.
        Plus whatever the chosen strategy raises.
    """
    logger.info(
        "Calculating split: total=%d split_type=%s participants=%d",
        total, split_type.value, len(participants),
    )
    display_names = {p.user_id: p.display_name for p in participants}

    if split_type == SplitType.EQUAL:
        return calculate_equal(total, participants)

    if split_type == SplitType.EXACT:
        _require_input(exact_amounts, "exact_amounts", split_type)
        return calculate_exact(total, exact_amounts, display_names)

    if split_type == SplitType.PERCENTAGE:
        _require_input(percentages, "percentages", split_type)
        return calculate_percentage(total, percentages, display_names)

    _require_input(shares, "shares", split_type)
    return calculate_shares(total, shares, display_names)


def _require_input(value, field_name: str, split_type: SplitType) -> None:
    if value is None:
        logger.error("%s required for %s split", field_name, split_type.value)
        raise AppError(
            ErrorCode.MISSING_SPLIT_INPUT,
            f"{field_name} is required for a {split_type.value} split.",
            422,
            field=field_name,
        )
