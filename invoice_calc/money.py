"""Money helpers shared across the calculator, aggregator, and reconciler."""
from __future__ import annotations

import re
from decimal import MAX_PREC, ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Optional

TAX_EXEMPT_CODE = "KCT"
TAX_RATE_CODES = (TAX_EXEMPT_CODE, "0%", "5%", "8%", "10%")
DEFAULT_TAX_RATE = "10%"

ZERO = Decimal(0)

# Exact arithmetic; overflow and invalid results come back as Infinity/NaN
# instead of raising, and are then treated as 0.
_MONEY_CONTEXT = Context(prec=MAX_PREC, rounding=ROUND_HALF_UP, traps=[])

# Leading numeric prefix, the way a browser number input reads "12abc" as 12.
_NUMBER_PREFIX = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")


def money_context():
    """Context manager for line arithmetic that never raises."""
    return localcontext(_MONEY_CONTEXT)


def to_decimal(value: object) -> Decimal:
    """Coerce raw form input to a Decimal; anything unusable becomes 0."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        match = _NUMBER_PREFIX.match(str(value))
        if not match:
            return ZERO
        try:
            number = Decimal(match.group(1))
        except InvalidOperation:
            return ZERO
    if not number.is_finite():
        return ZERO
    return number


def round_money(value: object) -> int:
    """Round to a whole currency unit, half away from zero."""
    with money_context():
        rounded = to_decimal(value).to_integral_value(rounding=ROUND_HALF_UP)
    return int(rounded) if rounded.is_finite() else 0


def parse_tax_rate(code: Optional[str]) -> Decimal:
    """Return the percentage for a tax-rate code.

    ``KCT`` (not subject to tax) is 0. Codes outside the known set are not
    rejected: whatever parses after stripping a trailing ``%`` is used, and
    anything else is 0.
    """
    if code is None:
        return ZERO
    code = str(code).strip()
    if code == TAX_EXEMPT_CODE:
        return ZERO
    if code.endswith("%"):
        code = code[:-1]
    try:
        rate = Decimal(code.strip())
    except InvalidOperation:
        return ZERO
    return rate if rate.is_finite() else ZERO


def is_known_tax_rate(code: Optional[str]) -> bool:
    return code in TAX_RATE_CODES
