# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Item tax calculation

Item prices arrive tax-inclusive. The tax base is recovered by dividing the
line total by the combined rate:

    VAT_ABLE + city tax      -> 1.12  (100% + 10% VAT + 2% НХАТ)
    VAT_ABLE, no city tax    -> 1.10  (100% + 10% VAT)
    not VAT_ABLE + city tax  -> 1.02  (100% + 2% НХАТ)
    not VAT_ABLE, no city tax -> 1.00

The caller-supplied total stays authoritative; base, VAT and city tax are
derived from it and never summed back.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ebarimt_bridge.core.money import ZERO, round2, to_decimal
from ebarimt_bridge.core.types import TaxType

VAT_RATE = Decimal("0.10")
CITY_TAX_RATE = Decimal("0.02")
ONE = Decimal("1")


@dataclass(frozen=True)
class TaxResult:
    base_amount: float
    vat: float
    city_tax: float
    unit_price: float
    total_amount: float


@dataclass(frozen=True)
class TaxRates:
    vat_rate: float
    city_tax_rate: float
    divisor: float


def is_vat_able(tax_type) -> bool:
    """Unknown tax types are treated as not taxable."""
    return tax_type == TaxType.VAT_ABLE.value


def get_divisor(tax_type, is_city_tax_applicable: bool) -> Decimal:
    divisor = ONE
    if is_vat_able(tax_type):
        divisor += VAT_RATE
    if is_city_tax_applicable:
        divisor += CITY_TAX_RATE
    return divisor


def raw_item_tax(total_amount, tax_type, is_city_tax_applicable: bool) -> tuple[Decimal, Decimal]:
    """Unrounded (vat, city_tax) for a line, used for receipt-level sums."""
    base = to_decimal(total_amount) / get_divisor(tax_type, is_city_tax_applicable)
    vat = base * VAT_RATE if is_vat_able(tax_type) else ZERO
    city_tax = base * CITY_TAX_RATE if is_city_tax_applicable else ZERO
    return vat, city_tax


def calculate_item_tax(total_amount, qty, tax_type, is_city_tax_applicable: bool) -> TaxResult:
    """
    Derive base amount, VAT, city tax and unit price for a tax-inclusive line.

    Args:
        total_amount: Tax-inclusive line total (qty * unit price)
        qty: Quantity
        tax_type: VAT_ABLE, VAT_FREE, VAT_ZERO or NO_VAT
        is_city_tax_applicable: Whether НХАТ applies to the item

    Returns:
        TaxResult with every amount rounded to 2 places
    """
    total = to_decimal(total_amount)
    quantity = to_decimal(qty)

    base_amount = round2(total / get_divisor(tax_type, is_city_tax_applicable))
    vat = round2(base_amount * VAT_RATE) if is_vat_able(tax_type) else ZERO
    city_tax = round2(base_amount * CITY_TAX_RATE) if is_city_tax_applicable else ZERO
    unit_price = round2(total / quantity) if quantity > 0 else ZERO

    return TaxResult(
        base_amount=float(base_amount),
        vat=float(vat),
        city_tax=float(city_tax),
        unit_price=float(unit_price),
        total_amount=total_amount,
    )


def get_tax_rates(tax_type, is_city_tax_applicable: bool) -> TaxRates:
    """Rates applied to a line, for diagnostics"""
    return TaxRates(
        vat_rate=float(VAT_RATE) if is_vat_able(tax_type) else 0.0,
        city_tax_rate=float(CITY_TAX_RATE) if is_city_tax_applicable else 0.0,
        divisor=float(get_divisor(tax_type, is_city_tax_applicable)),
    )
