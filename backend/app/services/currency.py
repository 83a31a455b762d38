"""Sri Lankan Rupee (LKR) formatting helpers shared by reports and exports.

Display code must never fail on bad amounts: anything that does not parse as a
finite number formats as zero.
"""

from __future__ import annotations

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

LKR_SYMBOL = "Rs."
LKR_CODE = "LKR"

COMMON_LKR_AMOUNTS = {
    "CONSULTATION_FEE": 2500,
    "SPECIALIST_FEE": 5000,
    "EMERGENCY_FEE": 7500,
    "TREATMENT_BASIC": 1500,
    "TREATMENT_ADVANCED": 15000,
    "SURGERY_MINOR": 50000,
    "SURGERY_MAJOR": 250000,
    "ROOM_CHARGE_GENERAL": 3000,
    "ROOM_CHARGE_PRIVATE": 8000,
    "MEDICATION_BASIC": 500,
    "LAB_TEST_BASIC": 1000,
    "LAB_TEST_ADVANCED": 5000,
}

# (threshold, divisor, suffix), largest first; L is lakh (100,000).
_COMPACT_UNITS = [
    (1_000_000_000, 1_000_000_000, "B"),
    (1_000_000, 1_000_000, "M"),
    (100_000, 100_000, "L"),
    (1_000, 1_000, "K"),
]

_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_SYMBOL_TOKENS = re.compile(r"Rs\.?|LKR", re.IGNORECASE)


def to_amount(value: object) -> float | None:
    """Coerce a number or numeric-looking string, or return None.

    Strings are read the way a browser ``parseFloat`` reads them: leading
    whitespace is skipped and the longest numeric prefix wins.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return None
        number = float(match.group(0))
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _round(number: float, places: int, shortest: bool = False) -> Decimal:
    """Round half-up.

    ``shortest`` rounds the shortest decimal spelling of the float (1.005 stays
    1.005 and becomes 1.01, as locale formatting does); otherwise the exact
    binary value is rounded, as ``toFixed`` does.
    """
    quantum = Decimal(1).scaleb(-places)
    value = Decimal(repr(number)) if shortest else Decimal(number)
    try:
        return value.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # beyond the decimal context precision; cents are meaningless here
        return Decimal(round(number, places))


def _decorate(formatted: str, show_symbol: bool, show_code: bool) -> str:
    if show_symbol and show_code:
        return f"{LKR_SYMBOL} {formatted} {LKR_CODE}"
    if show_symbol:
        return f"{LKR_SYMBOL} {formatted}"
    if show_code:
        return f"{formatted} {LKR_CODE}"
    return formatted


def format_lkr(amount: object, show_symbol: bool = True, show_code: bool = False) -> str:
    number = to_amount(amount)
    if number is None:
        return f"{LKR_SYMBOL} 0.00" if show_symbol else "0.00"
    return _decorate(f"{_round(number, 2, shortest=True):,.2f}", show_symbol, show_code)


def format_lkr_compact(amount: object) -> str:
    number = to_amount(amount)
    if number is None:
        return f"{LKR_SYMBOL} 0"
    for threshold, divisor, suffix in _COMPACT_UNITS:
        if number >= threshold:
            return f"{LKR_SYMBOL} {_round(number / divisor, 1)}{suffix}"
    return f"{LKR_SYMBOL} {_round(number, 0)}"


def parse_lkr(text: str) -> float:
    cleaned = _SYMBOL_TOKENS.sub("", text or "")
    cleaned = re.sub(r"\s", "", cleaned.replace(",", ""))
    number = to_amount(cleaned)
    return number if number is not None else 0.0


def is_valid_lkr_amount(text: str) -> bool:
    return parse_lkr(text) >= 0


def format_lkr_input(text: str) -> str:
    """Sanitise a money input field: digits, one point, at most two decimals."""
    cleaned = re.sub(r"[^\d.]", "", text or "")
    parts = cleaned.split(".")
    if len(parts) > 2:
        return f"{parts[0]}.{parts[1]}"
    if len(parts) == 2 and len(parts[1]) > 2:
        return f"{parts[0]}.{parts[1][:2]}"
    return cleaned
