# =============================================================================
# ledger/sanitize.py  —  Numeric coercion at the aggregator boundary
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns whatever is sitting in a stored amount field into a number.
#
# THE ZERO RULE:
#   Anything that isn't a finite number after parsing counts as 0.
#   That covers None, "", "abc", "1,000", NaN, "Infinity", booleans
#   and integers too large for a float.
#   Older stored data contains all of these.
#
#   Every amount the aggregator touches goes through to_amount(), and the
#   store checks new amounts with parse_amount().  No other module casts
#   stored values with float() directly.
# =============================================================================

import math
from typing import Any, Optional


def parse_amount(value: Any) -> Optional[float]:
    """Parse a stored amount, or return None when it isn't a finite number.

    Examples:
        >>> parse_amount("400")
        400.0
        >>> parse_amount("n/a") is None
        True
    """
    # bool is an int subclass; a checkbox value is never a payment.
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # json.loads keeps a long digit run as an int too big for a float.
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if not math.isfinite(number):
        return None
    return number


def to_amount(value: Any) -> float:
    """Coerce a stored amount to a finite float, or 0.0.

    Args:
        value: A number, a numeric string, or anything else.

    Returns:
        The parsed value, or 0.0 when it is missing, unparseable or
        non-finite.
    """
    number = parse_amount(value)
    return 0.0 if number is None else number


def to_count(value: Any) -> int:
    """Coerce a stored seat count to a non-negative int."""
    number = to_amount(value)
    if number <= 0:
        return 0
    return int(number)


def js_round(value: float) -> int:
    """Round half up: js_round(2.5) == 3, where round(2.5) == 2."""
    return math.floor(value + 0.5)
