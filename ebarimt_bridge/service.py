# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Bill service

Runs a frontend request through the whole bridge:

    parse -> fill headers from POS settings -> duplicate guard
          -> normalize -> POS API -> store the outcome

Storage and the POS API client are passed in, so the service holds no state
of its own and can run against fakes in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from ebarimt_bridge.api.client import PosApiClient, format_receipt_date
from ebarimt_bridge.api.http_client import HttpResult
from ebarimt_bridge.core.bill_processor import DEFAULTS, ProcessorDefaults, process_bill_request
from ebarimt_bridge.core.duplicate_checker import (
    BillLookup,
    DuplicateAction,
    check_order_id_duplicate,
    resolve_duplicate,
)
from ebarimt_bridge.core.parser import ParseFailure, parse_bill_request
from ebarimt_bridge.core.types import (
    DocumentType,
    ExistingBill,
    InputBillRequest,
    PosSettings,
    ProcessFailure,
    ResponseStatus,
)
from ebarimt_bridge.exceptions import DuplicateOrderError


class BillRepository(BillLookup, Protocol):
    def find_by_ebarimt_id(self, ebarimt_id: str) -> ExistingBill | None: ...

    def save_receipt(
        self,
        order_id: str,
        merchant_tin: str,
        request: dict,
        response: dict | None,
        success: bool,
        error_message: str | None = None,
    ) -> None: ...

    def save_return_log(
        self,
        order_id: str,
        ebarimt_id: str,
        merchant_tin: str,
        success: bool,
        message: str,
        return_date: datetime | None = None,
        error_code: str | None = None,
    ) -> None: ...

    def save_update_log(
        self, order_id: str, old_id: str, new_id: str, date: Any, merchant_tin: str
    ) -> None: ...

    def get_settings(self, merchant_tin: str | None = None) -> PosSettings | None: ...


@dataclass
class BillResult:
    """Envelope returned to the frontend: status is 1 on success, 0 otherwise"""
    success: bool
    message: str
    data: Any = None
    http_status: int = field(default=200, repr=False)

    @property
    def status(self) -> int:
        return 1 if self.success else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status,
            "message": self.message,
            "data": self.data,
        }


def _failure(message: str, data: Any = None, http_status: int = 200) -> BillResult:
    return BillResult(success=False, message=message, data=data, http_status=http_status)


MAX_PAGE_SIZE = 500
DEFAULT_PAGE_SIZE = 50


def page_bounds(limit: Any = None, offset: Any = None) -> tuple[int, int]:
    """Clamp listing arguments: limit to 1..500 (50 when missing), offset to >= 0"""
    try:
        limit = DEFAULT_PAGE_SIZE if limit in (None, "") else int(limit)
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    try:
        offset = 0 if offset in (None, "") else int(offset)
    except (TypeError, ValueError):
        offset = 0
    return max(1, min(MAX_PAGE_SIZE, limit)), max(0, offset)


def invoice_type_for(payload: dict) -> str:
    return DocumentType.B2B_INVOICE.value if payload.get("customerTin") else DocumentType.B2C_INVOICE.value


class BillService:
    """
    Usage:
        service = BillService(repository, PosApiClient(base_url))
        result = service.add_bill(frappe.request.json)
        return result.to_dict()
    """

    def __init__(
        self,
        repository: BillRepository,
        client: PosApiClient,
        defaults: ProcessorDefaults = DEFAULTS,
        logger: logging.Logger | None = None,
    ):
        self.repository = repository
        self.client = client
        self.defaults = defaults
        self.logger = logger or logging.getLogger("ebarimt_bridge")

    # =========================================================================
    # Submission
    # =========================================================================

    def add_bill(self, payload: Any) -> BillResult:
        """Submit a new bill; a repeated orderId is rejected unless force is set"""
        request = self._parse(payload)
        if isinstance(request, BillResult):
            return request
        return self._submit(request)

    def add_bill_invoice(self, payload: Any) -> BillResult:
        """Submit an invoice; B2B when a customerTin is given, B2C otherwise"""
        if isinstance(payload, dict):
            payload = {**payload, "type": invoice_type_for(payload)}
        return self.add_bill(payload)

    def update_bill(self, payload: Any) -> BillResult:
        """Replace a previously submitted bill for the same orderId"""
        request = self._parse(payload)
        if isinstance(request, BillResult):
            return request

        if not request.inactive_id:
            existing = self._find_existing(request.order_id, request.merchant_tin)
            if existing is None or not existing.ebarimt_id:
                return _failure(
                    "No existing bill found for provided orderId; cannot perform update.",
                    http_status=404,
                )
            request.inactive_id = existing.ebarimt_id

        request.force = True
        return self._submit(request)

    def update_bill_invoice(self, payload: Any) -> BillResult:
        if isinstance(payload, dict):
            payload = {**payload, "type": invoice_type_for(payload)}
        return self.update_bill(payload)

    def _parse(self, payload: Any) -> InputBillRequest | BillResult:
        parsed = parse_bill_request(payload)
        if isinstance(parsed, ParseFailure):
            self.logger.warning(f"Bill rejected: {parsed.message}")
            return _failure(parsed.message, http_status=400)

        request = parsed.data
        self._apply_settings(request)
        return request

    def _apply_settings(self, request: InputBillRequest):
        """Fill missing POS headers from the merchant's stored settings"""
        settings = self.repository.get_settings(request.merchant_tin or None)
        if settings is not None and (not request.merchant_tin or request.merchant_tin == settings.merchant_tin):
            request.merchant_tin = request.merchant_tin or settings.merchant_tin
            request.pos_no = request.pos_no or settings.pos_no
            request.district_code = request.district_code or settings.district_code
            request.branch_no = request.branch_no or settings.branch_no
            request.bill_id_suffix = request.bill_id_suffix or settings.bill_id_suffix

        for receipt in request.receipts:
            receipt.merchant_tin = receipt.merchant_tin or request.merchant_tin

    def _find_existing(self, order_id: str, merchant_tin: str | None) -> ExistingBill | None:
        return check_order_id_duplicate(self.repository, order_id, merchant_tin).existing_bill

    def _submit(self, request: InputBillRequest) -> BillResult:
        check = check_order_id_duplicate(self.repository, request.order_id, request.merchant_tin or None)
        decision = resolve_duplicate(check, force=request.force)

        if decision.rejected:
            self.logger.warning(f"Duplicate orderId rejected: {request.order_id} ({request.merchant_tin})")
            return _failure(
                decision.message,
                data={"existingBill": check.existing_bill.to_dict()},
                http_status=409,
            )

        if decision.action == DuplicateAction.SUPERSEDE and not request.inactive_id:
            request.inactive_id = decision.inactive_id

        processed = process_bill_request(request, self.defaults)
        if isinstance(processed, ProcessFailure):
            self.logger.warning(f"Bill {request.order_id} rejected: {processed.message}")
            return _failure(processed.message, http_status=400)

        document = processed.data
        payload = document.to_payload()
        self.logger.info(f"Submitting bill {document.order_id} ({document.type}, total {document.total_amount})")

        result = self.client.submit(payload)
        response = result.data if isinstance(result.data, dict) else None
        success = result.success and response is not None and response.get("status") == ResponseStatus.SUCCESS.value

        try:
            self.repository.save_receipt(
                order_id=document.order_id,
                merchant_tin=document.merchant_tin,
                request=payload,
                response=response,
                success=success,
                error_message=None if result.success else result.message,
            )
        except DuplicateOrderError as e:
            self.logger.warning(f"Bill {document.order_id} stored concurrently by another request")
            return _failure(e.message, data=self._response_data(response, document.order_id), http_status=409)

        if not success:
            message = (response or {}).get("message") or result.message
            self.logger.error(
                f"Bill {document.order_id} failed: status {(response or {}).get('status', 'N/A')}, {message}"
            )
            return _failure(message, data=self._response_data(response, document.order_id))

        if document.inactive_id and response.get("id"):
            self.repository.save_update_log(
                order_id=document.order_id,
                old_id=document.inactive_id,
                new_id=response["id"],
                date=response.get("date") or datetime.now(),
                merchant_tin=document.merchant_tin,
            )

        self.logger.info(f"Bill {document.order_id} registered as {response.get('id')}")
        return BillResult(success=True, message=result.message, data=self._response_data(response, document.order_id))

    @staticmethod
    def _response_data(response: dict | None, order_id: str) -> dict | None:
        if response is None:
            return None
        return {**response, "orderId": order_id}

    # =========================================================================
    # Cancellation & sync
    # =========================================================================

    def delete_bill(self, ebarimt_id: str | None) -> BillResult:
        """Cancel a registered receipt by its eBarimt id (DDTD)"""
        if not ebarimt_id:
            return _failure("ebarimtId is required", http_status=400)

        existing = self.repository.find_by_ebarimt_id(ebarimt_id)
        if existing is None or not existing.ebarimt_id:
            return _failure(f"No existing bill found for ebarimtId: {ebarimt_id}", http_status=404)

        receipt_date = format_receipt_date(existing.response_date or datetime.now())
        result = self.client.delete(existing.ebarimt_id, receipt_date)

        if result.success:
            self.repository.save_return_log(
                order_id=existing.order_id,
                ebarimt_id=existing.ebarimt_id,
                merchant_tin=existing.merchant_tin,
                success=True,
                message=result.message,
                return_date=datetime.now(),
            )
            self.logger.info(f"Bill {existing.order_id} ({existing.ebarimt_id}) cancelled")
        else:
            self.logger.error(f"Cancelling {existing.ebarimt_id} failed: {result.message}")

        return self._from_http(result)

    def send_bills(self) -> BillResult:
        """Push pending receipts to the central eBarimt system"""
        result = self.client.send_data()
        if not result.success:
            self.logger.error(f"sendData failed: {result.message}")
        return self._from_http(result)

    @staticmethod
    def _from_http(result: HttpResult) -> BillResult:
        return BillResult(success=result.success, message=result.message, data=result.data)
