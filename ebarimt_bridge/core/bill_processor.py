# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Bill processor

Turns a parsed frontend request into the document the POS API expects:

- computes VAT / НХАТ for every item from its tax-inclusive total
- classifies barcodes and derives unit prices
- sums receipts and the whole bill
- checks that PAID payments settle the bill (receipts only, never invoices)

Rounding happens once per level. Item totals are already 2-place values;
receipt and bill VAT / city tax are rounded from the raw (unrounded) item
taxes so they agree with the POS API's own check.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ebarimt_bridge.core.barcode import detect_barcode_type
from ebarimt_bridge.core.money import ZERO, round2, to_amount, to_decimal
from ebarimt_bridge.core.payment import validate_payments
from ebarimt_bridge.core.tax import calculate_item_tax, raw_item_tax
from ebarimt_bridge.core.types import (
    DirectBillRequest,
    DirectItem,
    DirectReceipt,
    InputBillRequest,
    InputItem,
    InputReceipt,
    ProcessFailure,
    ProcessResult,
    ProcessSuccess,
    is_b2b_type,
)
from ebarimt_bridge.core.validators import Validator


@dataclass(frozen=True)
class ProcessorDefaults:
    """Fallbacks for optional item fields"""
    measure_unit: str = "ш"
    classification_code: str | None = None
    tax_product_code: str | None = None


DEFAULTS = ProcessorDefaults()


@dataclass
class _ReceiptTotals:
    receipt: DirectReceipt
    raw_vat: Decimal
    raw_city_tax: Decimal


class _Failed(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _validate_header(request: InputBillRequest) -> str | None:
    v = Validator()
    v.field("orderId", request.order_id).required()
    v.field("merchantTin", request.merchant_tin).required()
    v.field("posNo", request.pos_no).required()
    v.field("districtCode", request.district_code).required()
    v.field("branchNo", request.branch_no).required()
    v.field("receipts", request.receipts).not_empty()
    if not request.is_invoice:
        v.field("payments", request.payments).not_empty()
    if is_b2b_type(request.type):
        v.field("customerTin", request.customer_tin).required(
            "customerTin (organization TIN) is required for B2B documents"
        )
    return v.validate().first_message


def process_item(
    item: InputItem,
    tax_type: str,
    receipt_index: int,
    item_index: int,
    defaults: ProcessorDefaults = DEFAULTS,
) -> DirectItem:
    prefix = f"receipts[{receipt_index}].items[{item_index}]"
    error = (Validator()
        .field(f"{prefix}.name", item.name).required()
        .field(f"{prefix}.qty", item.qty).positive()
        .field(f"{prefix}.totalAmount", item.total_amount).positive()
        .validate().first_message)
    if error:
        raise _Failed(error)

    tax = calculate_item_tax(item.total_amount, item.qty, tax_type, item.is_nhat)

    return DirectItem(
        name=item.name,
        bar_code=item.bar_code or "",
        bar_code_type=detect_barcode_type(item.bar_code),
        classification_code=item.classification_code or defaults.classification_code,
        measure_unit=item.measure_unit or defaults.measure_unit,
        qty=item.qty,
        unit_price=tax.unit_price,
        total_amount=tax.total_amount,
        total_vat=tax.vat,
        total_city_tax=tax.city_tax,
        tax_product_code=item.tax_product_code or defaults.tax_product_code,
    )


def process_receipt(
    receipt: InputReceipt,
    receipt_index: int,
    defaults: ProcessorDefaults = DEFAULTS,
) -> _ReceiptTotals:
    if not receipt.items:
        raise _Failed(f"receipts[{receipt_index}].items is empty")

    items: list[DirectItem] = []
    total_amount = ZERO
    raw_vat = ZERO
    raw_city_tax = ZERO

    for item_index, item in enumerate(receipt.items):
        direct_item = process_item(item, receipt.tax_type, receipt_index, item_index, defaults)
        items.append(direct_item)
        total_amount += to_decimal(direct_item.total_amount)

        vat, city_tax = raw_item_tax(item.total_amount, receipt.tax_type, item.is_nhat)
        raw_vat += vat
        raw_city_tax += city_tax

    direct_receipt = DirectReceipt(
        tax_type=receipt.tax_type,
        merchant_tin=receipt.merchant_tin,
        total_amount=to_amount(total_amount),
        total_vat=to_amount(raw_vat),
        total_city_tax=to_amount(raw_city_tax),
        items=items,
        customer_tin=receipt.customer_tin or None,
        bank_account_no=receipt.bank_account_no or None,
    )
    return _ReceiptTotals(receipt=direct_receipt, raw_vat=raw_vat, raw_city_tax=raw_city_tax)


def process_bill_request(
    request: InputBillRequest,
    defaults: ProcessorDefaults = DEFAULTS,
) -> ProcessResult:
    """
    Normalize a frontend bill into a POS API document.

    Either a complete DirectBillRequest is produced or a single message
    describing the first problem found; nothing partial is returned.

    Args:
        request: Parsed bill request
        defaults: Fallback values for optional item fields

    Returns:
        ProcessSuccess(data=DirectBillRequest) or ProcessFailure(message)
    """
    error = _validate_header(request)
    if error:
        return ProcessFailure(message=error)

    receipts: list[DirectReceipt] = []
    total_amount = ZERO
    raw_vat = ZERO
    raw_city_tax = ZERO

    try:
        for receipt_index, receipt in enumerate(request.receipts):
            totals = process_receipt(receipt, receipt_index, defaults)
            receipts.append(totals.receipt)
            total_amount += to_decimal(totals.receipt.total_amount)
            raw_vat += totals.raw_vat
            raw_city_tax += totals.raw_city_tax
    except _Failed as e:
        return ProcessFailure(message=e.message)

    total_amount = round2(total_amount)

    if not request.is_invoice:
        payment_check = validate_payments(request.payments, total_amount)
        if not payment_check.valid:
            return ProcessFailure(message=payment_check.message or "Payments do not match")

    document = DirectBillRequest(
        order_id=request.order_id,
        type=request.type,
        merchant_tin=request.merchant_tin,
        pos_no=request.pos_no,
        district_code=request.district_code,
        branch_no=request.branch_no,
        total_amount=float(total_amount),
        total_vat=to_amount(raw_vat),
        total_city_tax=to_amount(raw_city_tax),
        receipts=receipts,
        payments=[] if request.is_invoice else list(request.payments),
        customer_tin=request.customer_tin or "",
        consumer_no=request.consumer_no or "",
        inactive_id=request.inactive_id or "",
        report_month=request.report_month or None,
        invoice_id=request.invoice_id or None,
        bill_id_suffix=request.bill_id_suffix,
    )
    return ProcessSuccess(data=document)
