# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Money helpers

Every amount in the bridge goes through these helpers so that one rounding
policy (2 places, half away from zero) applies across the whole pipeline.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    """Convert a JSON number (or numeric string) to Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1") rather than its
    binary expansion. Invalid or missing values become zero.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO


def round2(value) -> Decimal:
    """Round to 2 decimal places, half away from zero."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_amount(value) -> float:
    """Rounded amount as a JSON-ready float."""
    return float(round2(value))
