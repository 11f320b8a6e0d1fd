"""
utils/currency.py — Display formatting for minor-unit amounts.

Formatting only. Nothing in here takes part in balance arithmetic, and the
currency code never changes a computed amount.

All conversions use integer arithmetic on paisa/cents: 10050 -> "₹100.50".
Indian Rupee amounts use Indian digit grouping (₹1,00,000.00); the other
supported currencies group in thousands.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


DEFAULT_CURRENCY = "INR"

SUPPORTED_CURRENCIES: dict[str, str] = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

_MINOR_UNITS_PER_MAJOR = 100
_NON_NUMERIC = re.compile(r"[^\d.]")


def currency_symbol(currency: str = DEFAULT_CURRENCY) -> str:
    """Returns the display symbol, or the upper-cased code for unknown currencies."""
    code = (currency or DEFAULT_CURRENCY).upper()
    return SUPPORTED_CURRENCIES.get(code, code)


def is_supported(currency: str) -> bool:
    return (currency or "").upper() in SUPPORTED_CURRENCIES


def _group_thousands(digits: str) -> str:
    # 1234567 -> 1,234,567
    groups = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    groups.insert(0, digits)
    return ",".join(groups)


def _group_indian(digits: str) -> str:
    # 12345678 -> 1,23,45,678 (last three, then pairs)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_amount(amount: int, currency: str = DEFAULT_CURRENCY) -> str:
    """
    Formats an amount in minor units as a display string.

    Examples:
        format_amount(10050)              -> "₹100.50"
        format_amount(10000000)           -> "₹1,00,000.00"
        format_amount(123456, "USD")      -> "$1,234.56"
        format_amount(123456, "JPY")      -> "JPY 1,234.56"
        format_amount(-500)               -> "-₹5.00"
    """
    code = (currency or DEFAULT_CURRENCY).upper()
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(amount), _MINOR_UNITS_PER_MAJOR)

    if code == "INR":
        whole = _group_indian(str(major))
    else:
        whole = _group_thousands(str(major))

    symbol = SUPPORTED_CURRENCIES.get(code)
    if symbol is None:
        return f"{sign}{code} {whole}.{minor:02d}"
    return f"{sign}{symbol}{whole}.{minor:02d}"


def format_with_sign(amount: int, currency: str = DEFAULT_CURRENCY) -> str:
    """Positive = you're owed (+), negative = you owe (-), zero unsigned."""
    formatted = format_amount(abs(amount), currency)
    if amount > 0:
        return f"+{formatted}"
    if amount < 0:
        return f"-{formatted}"
    return formatted


def parse_amount(display_amount: str) -> int:
    """
    Parses a display string into minor units: "₹1,00,000.50" -> 10000050.

    Everything except digits and '.' is discarded. Unparseable input gives 0.
    Sub-paisa digits round half-up.
    """
    cleaned = _NON_NUMERIC.sub("", display_amount or "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return 0
    minor = (value * _MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(minor)
