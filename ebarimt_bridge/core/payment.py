# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Payment reconciliation

Settled (PAID) payment lines must add up to the bill total within one cent.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ebarimt_bridge.core.money import ZERO, round2, to_decimal
from ebarimt_bridge.core.types import PaymentCode, PaymentLine, PaymentStatus

TOLERANCE = Decimal("0.01")

VALID_PAYMENT_CODES = frozenset(code.value for code in PaymentCode)
VALID_PAYMENT_STATUSES = frozenset(status.value for status in PaymentStatus)


@dataclass(frozen=True)
class PaymentValidation:
    valid: bool
    total_paid: float
    difference: float
    message: str | None = None


def validate_payments(payments: list[PaymentLine] | None, total_amount) -> PaymentValidation:
    """Check that PAID lines settle ``total_amount``.

    Lines with any other status (PAY, REVERSED, ERROR) are ignored.
    """
    if not payments:
        return PaymentValidation(
            valid=False,
            total_paid=0.0,
            difference=float(to_decimal(total_amount)),
            message="Payment list is empty",
        )

    total_paid = sum(
        (to_decimal(p.paid_amount) for p in payments if p.status == PaymentStatus.PAID.value),
        ZERO,
    )
    difference = round2(to_decimal(total_amount) - total_paid)

    if abs(difference) > TOLERANCE:
        return PaymentValidation(
            valid=False,
            total_paid=float(total_paid),
            difference=float(difference),
            message=(
                f"Payments do not match: total amount {total_amount}, "
                f"paid {float(total_paid)}, difference {float(difference)}"
            ),
        )

    return PaymentValidation(valid=True, total_paid=float(total_paid), difference=0.0)


def is_valid_payment_code(code: str) -> bool:
    return code in VALID_PAYMENT_CODES


def is_valid_payment_status(status: str) -> bool:
    return status in VALID_PAYMENT_STATUSES
