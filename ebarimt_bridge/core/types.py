# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Bill data types

Input records are produced by ``core.parser`` from frontend JSON; Direct*
records are the fully computed documents sent to the POS API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Union


class DocumentType(str, Enum):
    B2C_RECEIPT = "B2C_RECEIPT"
    B2B_RECEIPT = "B2B_RECEIPT"
    B2C_INVOICE = "B2C_INVOICE"
    B2B_INVOICE = "B2B_INVOICE"


class TaxType(str, Enum):
    VAT_ABLE = "VAT_ABLE"
    VAT_FREE = "VAT_FREE"
    VAT_ZERO = "VAT_ZERO"
    NO_VAT = "NO_VAT"


class BarcodeType(str, Enum):
    GS1 = "GS1"
    ISBN = "ISBN"
    UNDEFINED = "UNDEFINED"


class PaymentCode(str, Enum):
    CASH = "CASH"
    PAYMENT_CARD = "PAYMENT_CARD"
    BONUS_CARD_TEST = "BONUS_CARD_TEST"
    EMD = "EMD"
    BANK_TRANSFER = "BANK_TRANSFER"


class PaymentStatus(str, Enum):
    PAID = "PAID"
    PAY = "PAY"
    REVERSED = "REVERSED"
    ERROR = "ERROR"


class ResponseStatus(str, Enum):
    """Status reported by the POS API for a submitted bill"""
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    PAYMENT = "PAYMENT"


INVOICE_TYPES = frozenset({DocumentType.B2C_INVOICE.value, DocumentType.B2B_INVOICE.value})
B2B_TYPES = frozenset({DocumentType.B2B_RECEIPT.value, DocumentType.B2B_INVOICE.value})


def is_invoice_type(document_type: str | None) -> bool:
    return document_type in INVOICE_TYPES


def is_b2b_type(document_type: str | None) -> bool:
    return document_type in B2B_TYPES


# =============================================================================
# INPUT
# =============================================================================

@dataclass
class PaymentLine:
    code: str
    status: str
    paid_amount: float

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "status": self.status, "paidAmount": self.paid_amount}


@dataclass
class InputItem:
    name: str
    qty: float
    total_amount: float
    bar_code: str | None = None
    classification_code: str | None = None
    measure_unit: str | None = None
    is_nhat: bool = False
    tax_product_code: str | None = None


@dataclass
class InputReceipt:
    tax_type: str
    merchant_tin: str
    items: list[InputItem] = field(default_factory=list)
    customer_tin: str | None = None
    bank_account_no: str | None = None


@dataclass
class InputBillRequest:
    order_id: str
    type: str
    merchant_tin: str
    pos_no: str
    district_code: str
    branch_no: str
    receipts: list[InputReceipt] = field(default_factory=list)
    payments: list[PaymentLine] = field(default_factory=list)
    customer_tin: str | None = None
    consumer_no: str | None = None
    inactive_id: str | None = None
    report_month: str | None = None
    invoice_id: str | None = None
    bill_id_suffix: str | None = None
    force: bool = False

    @property
    def is_invoice(self) -> bool:
        return is_invoice_type(self.type)


# =============================================================================
# CANONICAL OUTPUT
# =============================================================================

@dataclass
class DirectItem:
    name: str
    bar_code: str
    bar_code_type: str
    classification_code: str | None
    measure_unit: str
    qty: float
    unit_price: float
    total_amount: float
    total_vat: float
    total_city_tax: float
    tax_product_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "barCode": self.bar_code,
            "barCodeType": self.bar_code_type,
            "classificationCode": self.classification_code,
            "measureUnit": self.measure_unit,
            "qty": self.qty,
            "unitPrice": self.unit_price,
            "totalAmount": self.total_amount,
            "totalVAT": self.total_vat,
            "totalCityTax": self.total_city_tax,
            "taxProductCode": self.tax_product_code,
        }


@dataclass
class DirectReceipt:
    tax_type: str
    merchant_tin: str
    total_amount: float
    total_vat: float
    total_city_tax: float
    items: list[DirectItem] = field(default_factory=list)
    customer_tin: str | None = None
    bank_account_no: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "taxType": self.tax_type,
            "merchantTin": self.merchant_tin,
            "totalAmount": self.total_amount,
            "totalVAT": self.total_vat,
            "totalCityTax": self.total_city_tax,
            "items": [item.to_dict() for item in self.items],
            "customerTin": self.customer_tin,
            "bankAccountNo": self.bank_account_no,
        }


@dataclass
class DirectBillRequest:
    order_id: str
    type: str
    merchant_tin: str
    pos_no: str
    district_code: str
    branch_no: str
    total_amount: float
    total_vat: float
    total_city_tax: float
    receipts: list[DirectReceipt] = field(default_factory=list)
    payments: list[PaymentLine] = field(default_factory=list)
    customer_tin: str = ""
    consumer_no: str = ""
    inactive_id: str = ""
    report_month: str | None = None
    invoice_id: str | None = None
    bill_id_suffix: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Document as sent to the POS API (orderId stays local)"""
        payload = {
            "type": self.type,
            "merchantTin": self.merchant_tin,
            "posNo": self.pos_no,
            "districtCode": self.district_code,
            "branchNo": self.branch_no,
            "totalAmount": self.total_amount,
            "totalVAT": self.total_vat,
            "totalCityTax": self.total_city_tax,
            "receipts": [receipt.to_dict() for receipt in self.receipts],
            "payments": [payment.to_dict() for payment in self.payments],
            "customerTin": self.customer_tin,
            "consumerNo": self.consumer_no,
            "inactiveId": self.inactive_id,
            "reportMonth": self.report_month,
            "invoiceId": self.invoice_id,
        }
        if self.bill_id_suffix:
            payload["billIdSuffix"] = self.bill_id_suffix
        return payload

    def to_dict(self) -> dict[str, Any]:
        return {"orderId": self.order_id, **self.to_payload()}


# =============================================================================
# RESULTS
# =============================================================================

@dataclass(frozen=True)
class ProcessSuccess:
    data: DirectBillRequest
    success: Literal[True] = True


@dataclass(frozen=True)
class ProcessFailure:
    message: str
    success: Literal[False] = False


ProcessResult = Union[ProcessSuccess, ProcessFailure]


@dataclass
class ExistingBill:
    """Prior submission as stored by the persistence layer"""
    order_id: str
    merchant_tin: str
    ebarimt_id: str | None
    total_amount: float
    created_at: datetime | None = None
    success: bool = False
    response_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "merchantTin": self.merchant_tin,
            "ebarimtId": self.ebarimt_id,
            "totalAmount": self.total_amount,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class PosSettings:
    """Per-merchant POS registration used to fill bill headers"""
    merchant_tin: str
    pos_no: str
    district_code: str = ""
    branch_no: str = ""
    bill_id_suffix: str = "01"
    updated_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "merchantTin": self.merchant_tin,
            "posNo": self.pos_no,
            "districtCode": self.district_code,
            "branchNo": self.branch_no,
            "billIdSuffix": self.bill_id_suffix,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
