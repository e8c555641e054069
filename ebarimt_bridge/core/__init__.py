# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Bill normalization engine

Pure computation: no Frappe, no I/O. Everything here can run outside a site.
"""

from ebarimt_bridge.core.barcode import detect_barcode_type
from ebarimt_bridge.core.bill_processor import ProcessorDefaults, process_bill_request
from ebarimt_bridge.core.duplicate_checker import (
    DuplicateAction,
    DuplicateCheckResult,
    DuplicateDecision,
    check_order_id_duplicate,
    resolve_duplicate,
)
from ebarimt_bridge.core.parser import ParseFailure, ParseSuccess, parse_bill_request
from ebarimt_bridge.core.payment import (
    PaymentValidation,
    is_valid_payment_code,
    is_valid_payment_status,
    validate_payments,
)
from ebarimt_bridge.core.tax import TaxResult, calculate_item_tax, get_tax_rates
from ebarimt_bridge.core.types import ProcessFailure, ProcessResult, ProcessSuccess

__all__ = [
    "DuplicateAction",
    "DuplicateCheckResult",
    "DuplicateDecision",
    "ParseFailure",
    "ParseSuccess",
    "PaymentValidation",
    "ProcessFailure",
    "ProcessResult",
    "ProcessSuccess",
    "ProcessorDefaults",
    "TaxResult",
    "calculate_item_tax",
    "check_order_id_duplicate",
    "detect_barcode_type",
    "get_tax_rates",
    "is_valid_payment_code",
    "is_valid_payment_status",
    "parse_bill_request",
    "process_bill_request",
    "resolve_duplicate",
    "validate_payments",
]
