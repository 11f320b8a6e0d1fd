"""
services/debt_simplifier.py — Balance aggregation, debt simplification and
the step-by-step explanation of that simplification.

This file is the SINGLE SOURCE OF TRUTH for how group balances are derived
and settled. The greedy matching loop exists exactly once (_greedy_matches);
simplify(), generate_explanation() and expense_debts() all consume it, so the
explanation can never disagree with the transfers actually proposed.

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - No storage access. Callers hand in plain value objects and maps.
  - Returns plain Python values and frozen model objects.
  - Fully unit-testable without a Flask app.

Numeric rules:
  - Every amount is an int in minor currency units. No float anywhere.
  - Positive balance = the group owes this user. Negative = user owes the group.

Caller contract:
  - simplify() expects sum(balances.values()) == 0. It does not renormalise.
    On a non-zero sum it stops when one side runs out and the remainder is
    simply not settled; balance_sum() / unsettled_residual() let the caller
    detect that case before or after the call.
  - Input maps are never mutated. Each call works on its own private copy,
    so concurrent calls need no coordination.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Iterator, Mapping

from settleup.app.models.expense import UNKNOWN_NAME, ExpenseRecord, ExpenseSplit, PayerInfo
from settleup.app.models.settlement import (
    SettlementRecord,
    SimplificationStep,
    SimplifiedDebt,
    UserBalance,
)
from settleup.app.utils.currency import DEFAULT_CURRENCY, format_amount


logger = logging.getLogger(__name__)

# Large settlements (₹5,000 and up) require step-up biometric confirmation.
BIOMETRIC_THRESHOLD_PAISA = 500000

_RULE = "─────────────────"


# ── Helpers ────────────────────────────────────────────────────────────────

def _name(user_id: str, display_names: Mapping[str, str]) -> str:
    return display_names.get(user_id, UNKNOWN_NAME)


def _greedy_matches(balances: Mapping[str, int]) -> Iterator[tuple[str, str, int]]:
    """
    Greedy largest-creditor / largest-debtor matching.

    Yields (debtor_id, creditor_id, amount) in settlement order until either
    side is exhausted. Works on private dict copies; `balances` is untouched.

    Ties are broken by input iteration order: max() returns the first maximal
    key, and dicts keep insertion order after deletions, so output is
    deterministic for a given input ordering.

    Each round zeroes at least one party, so there are at most
    creditors + debtors - 1 rounds. Not a minimum-cardinality solver.
    """
    creditors = {uid: amt for uid, amt in balances.items() if amt > 0}
    debtors   = {uid: -amt for uid, amt in balances.items() if amt < 0}

    logger.debug(
        "Categorized participants: creditors=%d debtors=%d",
        len(creditors), len(debtors),
    )

    while creditors and debtors:
        creditor_id = max(creditors, key=creditors.__getitem__)
        debtor_id   = max(debtors, key=debtors.__getitem__)

        amount = min(creditors[creditor_id], debtors[debtor_id])
        yield debtor_id, creditor_id, amount

        creditors[creditor_id] -= amount
        debtors[debtor_id]     -= amount

        if creditors[creditor_id] == 0:
            del creditors[creditor_id]
        if debtors[debtor_id] == 0:
            del debtors[debtor_id]


# ── Aggregation ────────────────────────────────────────────────────────────

def aggregate_balances(
        expenses: Iterable[ExpenseRecord],
        settlements: Iterable[SettlementRecord],
) -> dict[str, int]:
    """
    Derives {user_id: net_balance} from expense and settlement records.

    Algorithm:
      1. Credit each payer for the amount they fronted.
      2. Debit each split participant for their share.
      3. Net CONFIRMED settlements: the payer's debt shrinks (balance goes up)
         and the recipient's credit shrinks (balance goes down). Pending and
         rejected settlements are ignored.

    An expense with a missing paid_by or splits list contributes nothing.
    Every user id seen in any record appears in the result, even at 0.
    Never raises.
    """
    expenses = list(expenses)
    settlements = list(settlements)
    logger.debug(
        "Calculating balances from expenses: expenses=%d settlements=%d",
        len(expenses), len(settlements),
    )

    balances: dict[str, int] = defaultdict(int)

    for expense in expenses:
        if expense.paid_by is None or expense.splits is None:
            continue

        for payer in expense.paid_by:
            balances[payer.user_id] += payer.amount

        for split in expense.splits:
            balances[split.user_id] -= split.amount

    for settlement in settlements:
        if not settlement.is_confirmed:
            continue
        balances[settlement.from_user_id] += settlement.amount
        balances[settlement.to_user_id]   -= settlement.amount

    logger.debug("Balances calculated: participants=%d", len(balances))
    return dict(balances)


def balance_sum(balances: Mapping[str, int]) -> int:
    """Zero for any closed group; anything else means the input is inconsistent."""
    return sum(balances.values())


def unsettled_residual(balances: Mapping[str, int]) -> int:
    """Amount simplify() would leave unsettled for this input (0 when zero-sum)."""
    return abs(balance_sum(balances))


def balance_summary(
        balances: Mapping[str, int],
        display_names: Mapping[str, str],
) -> list[UserBalance]:
    """Per-member display lines, in input order."""
    return [
        UserBalance(user_id=uid, display_name=_name(uid, display_names), balance=bal)
        for uid, bal in balances.items()
    ]


# ── Simplification ─────────────────────────────────────────────────────────

def simplify(
        balances: Mapping[str, int],
        display_names: Mapping[str, str],
) -> list[SimplifiedDebt]:
    """
    Greedy debt simplification.

    Repeatedly matches the largest debtor with the largest creditor for
    min(owed, owing) until one side is empty. Users at exactly zero never
    appear in a transfer. Names missing from `display_names` become "Unknown".

    Args:
        balances:      {user_id: net_balance}, expected to sum to zero.
        display_names: {user_id: name}; may be sparse.

    Returns:
        Ordered list of SimplifiedDebt. Empty when everyone is settled.
    """
    logger.info("Simplifying debts: participants=%d", len(balances))

    debts: list[SimplifiedDebt] = []
    for debtor_id, creditor_id, amount in _greedy_matches(balances):
        debt = SimplifiedDebt(
            from_user_id=debtor_id,
            from_user_name=_name(debtor_id, display_names),
            to_user_id=creditor_id,
            to_user_name=_name(creditor_id, display_names),
            amount=amount,
        )
        logger.debug(
            "Creating settlement: from=%s to=%s amount=%d",
            debt.from_user_name, debt.to_user_name, amount,
        )
        debts.append(debt)

    logger.info("Debt simplification complete: settlements=%d", len(debts))
    return debts


def expense_debts(
        paid_by: Iterable[PayerInfo],
        splits: Iterable[ExpenseSplit],
) -> dict[str, dict[str, int]]:
    """
    Who owes whom for a single expense: {debtor_id: {creditor_id: amount}}.

    Nets each participant's paid minus owed inside the expense, then settles
    with the same greedy matcher as simplify().
    """
    net = aggregate_balances(
        [ExpenseRecord(paid_by=tuple(paid_by), splits=tuple(splits))],
        [],
    )

    debts: dict[str, dict[str, int]] = {}
    for debtor_id, creditor_id, amount in _greedy_matches(net):
        debts.setdefault(debtor_id, {})[creditor_id] = amount
    return debts


# ── Explanation ────────────────────────────────────────────────────────────

def _format_balance_description(
        balances: Mapping[str, int],
        display_names: Mapping[str, str],
        currency: str,
) -> str:
    lines = []
    for uid, amount in balances.items():
        name = _name(uid, display_names)
        if amount > 0:
            lines.append(f"{name} is owed {format_amount(amount, currency)}")
        elif amount < 0:
            lines.append(f"{name} owes {format_amount(-amount, currency)}")
        else:
            lines.append(f"{name} is settled")

    total = balance_sum(balances)
    lines.append(_RULE)
    if total == 0:
        lines.append(f"Total: {format_amount(0, currency)} ✓")
    else:
        lines.append(f"Total: {format_amount(total, currency)} (should be 0)")

    return "\n".join(lines)


def generate_explanation(
        balances: Mapping[str, int],
        display_names: Mapping[str, str],
        currency: str = DEFAULT_CURRENCY,
) -> list[SimplificationStep]:
    """
    Narrates simplify() step by step for display.

    Steps:
      1. "Original Balances"   — the input as given.
      2. "Categorize Members"  — who is owed money and who owes money.
      3. "Step i: X pays Y"    — one per transfer, with the remaining balances
                                 right after that transfer as its snapshot.
      4. "Result"              — transfer count, "already settled", or
                                 "no payments possible" for one-sided input.

    The settlements carried by the steps are, in order, exactly what
    simplify(balances, display_names) returns. `currency` affects formatting
    only.
    """
    logger.debug(
        "Generating simplification explanation: currency=%s participants=%d",
        currency, len(balances),
    )

    steps: list[SimplificationStep] = [
        SimplificationStep(
            title="Original Balances",
            description=_format_balance_description(balances, display_names, currency),
            balances=balances,
            display_names=display_names,
        )
    ]

    owed = [_name(uid, display_names) for uid, amt in balances.items() if amt > 0]
    owing = [_name(uid, display_names) for uid, amt in balances.items() if amt < 0]
    steps.append(
        SimplificationStep(
            title="Categorize Members",
            description=(
                f"Owed money: {', '.join(owed) if owed else 'None'}\n"
                f"Owes money: {', '.join(owing) if owing else 'None'}"
            ),
            balances=balances,
            display_names=display_names,
        )
    )

    running = dict(balances)
    settlements = simplify(balances, display_names)

    for index, debt in enumerate(settlements, start=1):
        running[debt.from_user_id] += debt.amount
        running[debt.to_user_id]   -= debt.amount

        steps.append(
            SimplificationStep(
                title=f"Step {index}: {debt.from_user_name} pays {debt.to_user_name}",
                description=(
                    f"Amount: {format_amount(debt.amount, currency)}\n\n"
                    f"{_format_balance_description(running, display_names, currency)}"
                ),
                balances=running,
                display_names=display_names,
                settlement=debt,
            )
        )

    if settlements:
        count = len(settlements)
        potential = len(owed) * len(owing)
        summary = (
            f"Simplified to {count} payment{'s' if count != 1 else ''} "
            f"(from potentially {potential})"
        )
    elif any(balances.values()):
        # One-sided input: only creditors or only debtors remain.
        summary = "No payments possible: nobody on the other side to settle with"
    else:
        summary = "Everyone is already settled up"

    steps.append(
        SimplificationStep(
            title="Result",
            description=summary,
            balances=running,
            display_names=display_names,
        )
    )

    logger.debug("Explanation generated: steps=%d", len(steps))
    return steps


# ── Policy ─────────────────────────────────────────────────────────────────

def requires_biometric(amount: int, threshold: int = BIOMETRIC_THRESHOLD_PAISA) -> bool:
    """True when a settlement of `amount` paisa needs step-up authentication."""
    required = amount >= threshold
    if required:
        logger.info(
            "Biometric required for settlement: amount=%d threshold=%d",
            amount, threshold,
        )
    return required
