"""Decimal helpers shared by the deposit and withdrawal flows."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

# Balances and credits are kept to 6 decimal places
TON_QUANTUM = Decimal("0.000001")


def round_ton(value: Decimal) -> Decimal:
    """Round a TON amount to 6 decimal places, half away from zero."""
    return value.quantize(TON_QUANTUM, rounding=ROUND_HALF_UP)


def parse_amount(raw: Any) -> Optional[Decimal]:
    """
    Coerce a request amount to a positive finite Decimal.

    Accepts numbers and numeric strings. Returns None for anything falsy,
    non-numeric, non-finite, zero or negative.
    """
    if not raw or isinstance(raw, bool):
        return None
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def to_number(value: Decimal) -> float:
    """JSON-friendly representation of a Decimal amount."""
    return float(value)
