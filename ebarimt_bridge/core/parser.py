# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Bill request parser

Converts the frontend's JSON body into typed ``InputBillRequest`` records.
Only the shape of the data is checked here (objects, lists, numbers); the
business rules (required headers, positive amounts, payment balance) belong
to ``core.bill_processor`` so their messages keep a single order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union

from ebarimt_bridge.core.types import (
    DocumentType,
    InputBillRequest,
    InputItem,
    InputReceipt,
    PaymentLine,
    TaxType,
)
from ebarimt_bridge.core.validators import Validator

DOCUMENT_TYPES = [t.value for t in DocumentType]


@dataclass(frozen=True)
class ParseSuccess:
    data: InputBillRequest
    success: Literal[True] = True


@dataclass(frozen=True)
class ParseFailure:
    message: str
    success: Literal[False] = False


ParseResult = Union[ParseSuccess, ParseFailure]


class _ShapeError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _check(validator: Validator):
    result = validator.validate()
    if not result.is_valid:
        raise _ShapeError(result.first_message)


def _text(data: dict, key: str, path: str, default: str | None = None) -> str | None:
    """Identifier-like field; integers are accepted and kept as text."""
    value = data.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    _check(Validator().field(path, value).is_string())
    return value


def _number(data: dict, key: str, path: str) -> float:
    value = data.get(key)
    if value is None:
        return 0
    _check(Validator().field(path, value).is_numeric())
    return value


def _flag(data: dict, key: str, path: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    _check(Validator().field(path, value).custom(
        lambda v: isinstance(v, bool) or v in (0, 1),
        f"{path} must be a boolean"
    ))
    return bool(value)


def _objects(data: dict, key: str, path: str) -> list[dict]:
    value = data.get(key)
    if value is None:
        return []
    _check(Validator().field(path, value).is_list())
    for index, entry in enumerate(value):
        _check(Validator().field(f"{path}[{index}]", entry).is_dict())
    return value


def _parse_item(data: dict, path: str) -> InputItem:
    return InputItem(
        name=_text(data, "name", f"{path}.name", default=""),
        qty=_number(data, "qty", f"{path}.qty"),
        total_amount=_number(data, "totalAmount", f"{path}.totalAmount"),
        bar_code=_text(data, "barCode", f"{path}.barCode"),
        classification_code=_text(data, "classificationCode", f"{path}.classificationCode"),
        measure_unit=_text(data, "measureUnit", f"{path}.measureUnit"),
        is_nhat=_flag(data, "isNhat", f"{path}.isNhat"),
        tax_product_code=_text(data, "taxProductCode", f"{path}.taxProductCode"),
    )


def _parse_receipt(data: dict, path: str, merchant_tin: str) -> InputReceipt:
    items = _objects(data, "items", f"{path}.items")
    return InputReceipt(
        tax_type=_text(data, "taxType", f"{path}.taxType", default=TaxType.VAT_ABLE.value),
        merchant_tin=_text(data, "merchantTin", f"{path}.merchantTin", default=merchant_tin),
        items=[_parse_item(item, f"{path}.items[{i}]") for i, item in enumerate(items)],
        customer_tin=_text(data, "customerTin", f"{path}.customerTin"),
        bank_account_no=_text(data, "bankAccountNo", f"{path}.bankAccountNo"),
    )


def _parse_payment(data: dict, path: str) -> PaymentLine:
    return PaymentLine(
        code=_text(data, "code", f"{path}.code", default=""),
        status=_text(data, "status", f"{path}.status", default=""),
        paid_amount=_number(data, "paidAmount", f"{path}.paidAmount"),
    )


def _default_type(customer_tin: str | None) -> str:
    return DocumentType.B2B_RECEIPT.value if customer_tin else DocumentType.B2C_RECEIPT.value


def parse_bill_request(payload: Any) -> ParseResult:
    """
    Parse a frontend bill request.

    Args:
        payload: Decoded JSON body (camelCase keys)

    Returns:
        ParseSuccess with an InputBillRequest, or ParseFailure naming the
        first malformed field
    """
    if not isinstance(payload, dict):
        return ParseFailure(message="Request body must be an object")

    try:
        customer_tin = _text(payload, "customerTin", "customerTin")
        document_type = _text(payload, "type", "type", default=_default_type(customer_tin))
        _check(Validator().field("type", document_type).in_list(DOCUMENT_TYPES))

        merchant_tin = _text(payload, "merchantTin", "merchantTin", default="")
        receipts = _objects(payload, "receipts", "receipts")
        payments = _objects(payload, "payments", "payments")

        request = InputBillRequest(
            order_id=_text(payload, "orderId", "orderId", default=""),
            type=document_type,
            merchant_tin=merchant_tin,
            pos_no=_text(payload, "posNo", "posNo", default=""),
            district_code=_text(payload, "districtCode", "districtCode", default=""),
            branch_no=_text(payload, "branchNo", "branchNo", default=""),
            receipts=[
                _parse_receipt(receipt, f"receipts[{i}]", merchant_tin)
                for i, receipt in enumerate(receipts)
            ],
            payments=[_parse_payment(payment, f"payments[{i}]") for i, payment in enumerate(payments)],
            customer_tin=customer_tin,
            consumer_no=_text(payload, "consumerNo", "consumerNo"),
            inactive_id=_text(payload, "inactiveId", "inactiveId"),
            report_month=_text(payload, "reportMonth", "reportMonth"),
            invoice_id=_text(payload, "invoiceId", "invoiceId"),
            bill_id_suffix=_text(payload, "billIdSuffix", "billIdSuffix"),
            force=_flag(payload, "force", "force"),
        )
    except _ShapeError as e:
        return ParseFailure(message=e.message)

    return ParseSuccess(data=request)


__all__ = ["ParseFailure", "ParseResult", "ParseSuccess", "parse_bill_request"]
