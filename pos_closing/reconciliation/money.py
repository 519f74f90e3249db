"""
Tolerant money parsing for vendor payloads.

Vendors report amounts as numbers, formatted strings, or nested
``{"amount": ...}`` / ``{"value": ...}`` objects. Everything here degrades to
``0`` instead of raising.
"""
from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

_CENT = Decimal("0.01")
_MAX_NESTING = 4

_DECIMAL_COMMA = re.compile(r"^-?\d+,\d{1,2}$")
_INTEGER_LITERAL = re.compile(r"^[+-]?\d+$")


def round_currency(value: Any) -> float:
    """Round to 2 decimal places, half-up."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        quantized = Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return 0.0
    if not quantized.is_finite():
        return 0.0
    # normalise -0.0
    return float(quantized) + 0.0


def _clean_numeric_string(text: str) -> str:
    cleaned = text.strip().replace(" ", "").replace("\u00a0", "")
    if _DECIMAL_COMMA.match(cleaned):
        return cleaned.replace(",", ".")
    return cleaned.replace(",", "")


def _to_number(value: Any, depth: int) -> float | int:
    if value is None or value == "" or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float, Decimal)):
        if isinstance(value, int):
            return value
        number = float(value)
        return number if math.isfinite(number) else 0
    if isinstance(value, str):
        cleaned = _clean_numeric_string(value)
        if _INTEGER_LITERAL.match(cleaned):
            return int(cleaned)
        try:
            number = float(cleaned)
        except ValueError:
            return 0
        return number if math.isfinite(number) else 0
    if isinstance(value, dict) and depth < _MAX_NESTING:
        if "amount" in value:
            return _to_number(value["amount"], depth + 1)
        if "value" in value:
            return _to_number(value["value"], depth + 1)
    return 0


def to_number(value: Any) -> float | int:
    """Parse *value* into a finite number, ``0`` when unparseable.

    Integer-typed input (``int`` or an integer literal string) stays ``int``
    so :func:`normalize_money` can tell minor-unit integers apart from
    already-decimal amounts.
    """
    return _to_number(value, 0)


def normalize_money(value: Any, divisor: int = 1) -> float:
    """Normalize a vendor money value to a 2-decimal float.

    With ``divisor > 1`` an integer-typed value whose magnitude is at least
    the divisor is treated as minor units (``15000`` cents -> ``150.00``).
    Floats are never divided, so normalizing an already normalized value is
    a no-op.
    """
    amount = to_number(value)
    if (
        divisor
        and divisor > 1
        and isinstance(amount, int)
        and abs(amount) >= divisor
    ):
        amount = Decimal(amount) / Decimal(divisor)
    return round_currency(amount)
