#!/usr/bin/env python3
"""
utils/explain.py — SettleUp  ·  Debt Simplification Walkthrough
━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

Renders the step-by-step explanation of a group's debt simplification in the
terminal, followed by the final transfer table.

Usage (run from project root):
  settleup-explain group.json
  settleup-explain group.json --currency USD
  python -m settleup.utils.explain group.json

Input file, either pre-aggregated balances:
  {"balances": {"u1": -10000, "u2": 10000},
   "display_names": {"u1": "Asha", "u2": "Ravi"}, "currency": "INR"}

or raw store documents (aggregated first):
  {"expenses": [{"paidBy": [...], "splits": [...]}],
   "settlements": [{"fromUserId": ..., "toUserId": ..., "amount": ..., "status": "confirmed"}],
   "display_names": {...}}
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from marshmallow import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from settleup.app.models.settlement import SimplificationStep
from settleup.app.schemas.balance_schema import AggregateRequestSchema
from settleup.app.schemas.settlement_schema import ExplanationRequestSchema
from settleup.app.services import debt_simplifier
from settleup.app.utils.currency import DEFAULT_CURRENCY, format_amount, is_supported


# ═══════════════════════════════════════════════════════════════════════════
#  THEME
# ═══════════════════════════════════════════════════════════════════════════

THEME = Theme({
    "hdr":     "bold bright_white",
    "muted":   "bright_black",
    "accent":  "bright_cyan",
    "good":    "bright_green",
    "warn":    "bright_yellow",
    "bad":     "bright_red",
    "border":  "bright_black",
})


# ═══════════════════════════════════════════════════════════════════════════
#  INPUT
# ═══════════════════════════════════════════════════════════════════════════

def resolve_input(payload: dict) -> tuple[dict[str, int], dict[str, str], str | None]:
    """
    Returns (balances, display_names, currency) from a parsed input file.

    Raises marshmallow.ValidationError on a malformed envelope. Malformed
    expense/settlement documents inside it are skipped, not raised.
    """
    if "balances" in payload:
        data = ExplanationRequestSchema().load(payload)
        return data["balances"], data["display_names"], data["currency"]

    currency = payload.get("currency")
    data = AggregateRequestSchema().load({
        k: v for k, v in payload.items() if k in ("expenses", "settlements", "display_names")
    })
    balances = debt_simplifier.aggregate_balances(data["expenses"], data["settlements"])
    return balances, data["display_names"], currency


# ═══════════════════════════════════════════════════════════════════════════
#  RENDERERS
# ═══════════════════════════════════════════════════════════════════════════

def render_step(step: SimplificationStep) -> Panel:
    border = "accent" if step.settlement is not None else "border"
    return Panel(
        escape(step.description),
        title=f"[hdr]{escape(step.title)}[/]",
        title_align="left",
        border_style=border,
        box=box.ROUNDED,
    )


def render_transfer_table(steps: list[SimplificationStep], currency: str) -> Table:
    tbl = Table(
        title="[muted]Suggested Payments[/]", title_justify="left",
        box=box.ROUNDED, border_style="border",
        show_header=True, header_style="bold dim",
        padding=(0, 2), expand=True,
    )
    for col, kw in [
        ("#",      dict(justify="right", width=4)),
        ("From",   dict(style="bold")),
        ("To",     dict(style="bold")),
        ("Amount", dict(justify="right")),
    ]:
        tbl.add_column(col, **kw)

    transfers = [s.settlement for s in steps if s.settlement is not None]
    for index, debt in enumerate(transfers, start=1):
        tbl.add_row(
            f"[muted]{index}[/]",
            escape(debt.from_user_name),
            escape(debt.to_user_name),
            f"[good]{format_amount(debt.amount, currency)}[/]",
        )
    if not transfers:
        tbl.add_row("", "[muted]—[/]", "[muted]—[/]", "[good]All settled[/]")
    return tbl


# ═══════════════════════════════════════════════════════════════════════════
#  RUN
# ═══════════════════════════════════════════════════════════════════════════

def run(path: Path, currency: str | None = None, console: Console | None = None) -> int:
    con = console or Console(theme=THEME, highlight=False)

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        con.print(Panel(f"[bad]Cannot read {escape(str(path))}[/]\n[dim]{escape(str(e))}[/]",
                        title="[bad]Input Error[/]", border_style="red"))
        return 1

    if not isinstance(payload, dict):
        con.print(Panel("[bad]Input must be a JSON object.[/]",
                        title="[bad]Input Error[/]", border_style="red"))
        return 1

    try:
        balances, display_names, file_currency = resolve_input(payload)
    except ValidationError as e:
        con.print(Panel(f"[bad]Invalid input[/]\n[dim]{escape(str(e.messages))}[/]",
                        title="[bad]Input Error[/]", border_style="red"))
        return 1

    code = (currency or file_currency or DEFAULT_CURRENCY).upper()
    if not is_supported(code):
        con.print(Panel(f"[bad]Unsupported currency {escape(code)}[/]",
                        title="[bad]Input Error[/]", border_style="red"))
        return 1

    steps = debt_simplifier.generate_explanation(balances, display_names, code)
    for step in steps:
        con.print(render_step(step))
    con.print(render_transfer_table(steps, code))

    residual = debt_simplifier.unsettled_residual(balances)
    if residual:
        con.print(
            f"[warn]⚠[/]  [dim]Balances do not sum to zero; "
            f"{format_amount(residual, code)} is left unsettled.[/]"
        )
    return 0


# ═══════════════════════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════════════════════

def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="settleup-explain",
        description="SettleUp — debt simplification walkthrough",
    )
    ap.add_argument("path", type=Path,
                    help="JSON file with balances, or expenses/settlements")
    ap.add_argument("--currency", default=None,
                    help="Currency code for formatting (overrides the file)")
    args = ap.parse_args(argv)
    return run(args.path, currency=args.currency)


if __name__ == "__main__":
    sys.exit(main())
