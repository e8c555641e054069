# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
# pyright: reportAttributeAccessIssue=false, reportIndexIssue=false

"""
eBarimt Bridge API Endpoints
Whitelisted functions called by POS frontends:

    /api/method/ebarimt_bridge.api.api.<name>

Bill endpoints answer with {success, status, message, data}; status is 1
on success and 0 on failure. Failures are reported, never raised.
"""

from datetime import datetime, timezone

import frappe
from frappe import _

from ebarimt_bridge.api.client import EbarimtInfoClient, PosApiClient
from ebarimt_bridge.core.types import PosSettings
from ebarimt_bridge.exceptions import EBarimtBridgeError, PosApiError
from ebarimt_bridge.logger import (
    get_logger,
    log_action,
    log_bill_rejected,
    log_bill_returned,
    log_bill_submitted,
    log_error,
)
from ebarimt_bridge.repository import (
    RECEIPT_DOCTYPE,
    RECEIPT_FIELDS,
    RETURN_LOG_DOCTYPE,
    UPDATE_LOG_DOCTYPE,
    ReceiptRepository,
    list_records,
)
from ebarimt_bridge.service import BillResult, BillService, page_bounds
from ebarimt_bridge.utils.config import get_config

JSON_LIST_KEYS = ("receipts", "payments")


def get_bill_service() -> BillService:
    config = get_config()
    return BillService(
        ReceiptRepository(),
        PosApiClient(config.require_pos_api(), config.timeout),
        config.defaults,
        get_logger(),
    )


def get_info_client() -> EbarimtInfoClient:
    config = get_config()
    return EbarimtInfoClient(config.info_api_base_url, config.timeout)


def _request_payload(kwargs):
    """JSON body of the current request, or the form arguments"""
    request = getattr(frappe.local, "request", None)
    if request is not None:
        body = request.get_json(silent=True)
        if body is not None:
            return body

    payload = {k: v for k, v in kwargs.items() if k != "cmd"}
    for key in JSON_LIST_KEYS:
        if isinstance(payload.get(key), str):
            payload[key] = frappe.parse_json(payload[key])
    return payload


def _set_status(http_status: int):
    if http_status != 200:
        frappe.local.response.http_status_code = http_status


def _respond(result: BillResult) -> dict:
    _set_status(result.http_status)
    return result.to_dict()


def _run_bill_action(action: str, call) -> dict:
    try:
        result = call()
    except EBarimtBridgeError as e:
        log_error(f"{action} failed: {e.message}", data=e.to_dict(), exc=e)
        result = BillResult(success=False, message=e.message, http_status=500)
    except Exception as e:
        log_error(f"{action} failed: {e!s}", exc=e)
        result = BillResult(success=False, message=str(e) or _("Internal error"), http_status=500)
    return _respond(result)


def _log_outcome(payload, result: BillResult):
    payload = payload if isinstance(payload, dict) else {}
    order_id = payload.get("orderId")
    data = result.data if isinstance(result.data, dict) else {}

    if result.success:
        log_bill_submitted(order_id, data.get("id"), data.get("totalAmount"), payload.get("type") or "")
    else:
        log_bill_rejected(order_id, result.message)


def _submit_bill(action: str, method_name: str, kwargs) -> dict:
    payload = _request_payload(kwargs)

    def call():
        result = getattr(get_bill_service(), method_name)(payload)
        _log_outcome(payload, result)
        return result

    return _run_bill_action(action, call)


# =========================================================================
# Health
# =========================================================================

@frappe.whitelist(allow_guest=True)
def health():
    """Liveness probe"""
    return {
        "ok": True,
        "service": "ebarimt_bridge",
        "ts": datetime.now(timezone.utc).isoformat(),
    }


# =========================================================================
# Bill Operations
# =========================================================================

@frappe.whitelist(methods=["POST"])
def add_bill(**kwargs):
    """Register a receipt (B2C_RECEIPT / B2B_RECEIPT)"""
    return _submit_bill("Add Bill", "add_bill", kwargs)


@frappe.whitelist(methods=["POST"])
def add_bill_invoice(**kwargs):
    """Register an invoice; B2B_INVOICE when customerTin is sent"""
    return _submit_bill("Add Bill Invoice", "add_bill_invoice", kwargs)


@frappe.whitelist(methods=["POST"])
def update_bill(**kwargs):
    """Replace the receipt registered for an orderId"""
    return _submit_bill("Update Bill", "update_bill", kwargs)


@frappe.whitelist(methods=["POST"])
def update_bill_invoice(**kwargs):
    """Replace the invoice registered for an orderId"""
    return _submit_bill("Update Bill Invoice", "update_bill_invoice", kwargs)


@frappe.whitelist(methods=["POST"])
def delete_bill(**kwargs):
    """Cancel a receipt by its eBarimt id"""
    payload = _request_payload(kwargs)
    ebarimt_id = (payload.get("ebarimtId") or payload.get("ebarimt_id")) if isinstance(payload, dict) else None

    def call():
        result = get_bill_service().delete_bill(ebarimt_id)
        if result.success:
            log_bill_returned(None, ebarimt_id)
        else:
            log_bill_rejected(None, result.message)
        return result

    return _run_bill_action("Delete Bill", call)


@frappe.whitelist(methods=["POST"])
def send_bills():
    """Push pending receipts to the central eBarimt system"""
    return _run_bill_action("Send Bills", lambda: get_bill_service().send_bills())


# =========================================================================
# Logs
# =========================================================================

def _receipt_row(row) -> dict:
    return {
        "id": row.name,
        "orderId": row.order_id,
        "merchantTin": row.merchant_tin,
        "ebarimtId": row.ebarimt_id,
        "totalAmount": row.total_amount,
        "totalVat": row.total_vat,
        "totalCityTax": row.total_city_tax,
        "receiptType": row.receipt_type,
        "success": bool(row.success),
        "errorMessage": row.error_message,
        "responseStatus": row.response_status,
        "responseMessage": row.response_message,
        "responseDate": row.response_date,
        "createdAt": row.creation,
        "updatedAt": row.modified,
    }


@frappe.whitelist()
def get_logs(order_id=None, limit=None, offset=None):
    """Submission outcomes per order"""
    limit, offset = page_bounds(limit, offset)
    result = list_records(
        RECEIPT_DOCTYPE,
        fields=["order_id", "ebarimt_id", "response_date", "success", "response_message",
                "error_message", "creation", "modified"],
        filters={"order_id": order_id} if order_id else None,
        order_by="modified desc",
        limit=limit,
        offset=offset,
    )
    result["data"] = [
        {
            "orderId": row.order_id,
            "id": row.ebarimt_id,
            "date": row.response_date or row.creation,
            "success": bool(row.success),
            "message": row.response_message or row.error_message,
            "createdAt": row.creation,
            "updatedAt": row.modified,
        }
        for row in result["data"]
    ]
    return result


@frappe.whitelist()
def get_returns(order_id=None, limit=None, offset=None):
    """Cancellation log"""
    limit, offset = page_bounds(limit, offset)
    result = list_records(
        RETURN_LOG_DOCTYPE,
        fields=["order_id", "ebarimt_id", "return_date", "success", "message", "error_code", "creation"],
        filters={"order_id": order_id} if order_id else None,
        order_by="return_date desc",
        limit=limit,
        offset=offset,
    )
    result["data"] = [
        {
            "orderId": row.order_id,
            "id": row.ebarimt_id,
            "returnDate": row.return_date,
            "success": bool(row.success),
            "message": row.message,
            "errorCode": row.error_code,
            "createdAt": row.creation,
        }
        for row in result["data"]
    ]
    return result


@frappe.whitelist()
def get_updates(order_id=None, limit=None, offset=None):
    """Links from replaced receipts to the receipts that replaced them"""
    limit, offset = page_bounds(limit, offset)
    result = list_records(
        UPDATE_LOG_DOCTYPE,
        fields=["order_id", "old_id", "new_id", "date", "merchant_tin", "creation"],
        filters={"order_id": order_id} if order_id else None,
        order_by="date desc",
        limit=limit,
        offset=offset,
    )
    result["data"] = [
        {
            "orderId": row.order_id,
            "oldId": row.old_id,
            "newId": row.new_id,
            "date": row.date,
            "merchantTin": row.merchant_tin,
            "createdAt": row.creation,
        }
        for row in result["data"]
    ]
    return result


@frappe.whitelist()
def get_response_logs(order_id=None, status=None, limit=None, offset=None):
    """Stored POS API responses, optionally filtered by order and response status"""
    limit, offset = page_bounds(limit, offset)
    filters = {}
    if order_id:
        filters["order_id"] = order_id
    if status:
        filters["response_status"] = status.upper()

    result = list_records(
        RECEIPT_DOCTYPE,
        fields=RECEIPT_FIELDS,
        filters=filters,
        order_by="modified desc",
        limit=limit,
        offset=offset,
    )
    result["data"] = [_receipt_row(row) for row in result["data"]]
    return result


@frappe.whitelist()
def get_response_log(order_id, merchant_tin=None):
    """All stored responses for one order, with its replacement chain"""
    filters = {"order_id": order_id}
    if merchant_tin:
        filters["merchant_tin"] = merchant_tin

    rows = frappe.get_all(
        RECEIPT_DOCTYPE,
        filters=filters,
        fields=RECEIPT_FIELDS,
        order_by="modified desc",
    )
    if not rows:
        _set_status(404)
        return {"ok": False, "error": "Response log not found"}

    updates = ReceiptRepository().list_updates(order_id)
    return {
        "ok": True,
        "data": [_receipt_row(row) for row in rows],
        "updates": [{"oldId": u.old_id, "newId": u.new_id, "date": u.date} for u in updates],
    }


# =========================================================================
# POS API Settings
# =========================================================================

@frappe.whitelist()
@log_action("Get Settings")
def get_settings(merchant_tin=None):
    """Settings for a merchant, or the most recently saved ones"""
    settings = ReceiptRepository().get_settings(merchant_tin)
    return {"success": True, "data": settings.to_dict() if settings else None}


@frappe.whitelist(methods=["POST", "PUT"])
@log_action("Save Settings")
def save_settings(**kwargs):
    """Create or update POS API Settings for a merchant"""
    payload = _request_payload(kwargs)
    merchant_tin = payload.get("merchantTin") or payload.get("merchant_tin")
    pos_no = payload.get("posNo") or payload.get("pos_no")

    if not merchant_tin or not pos_no:
        _set_status(400)
        return {"success": False, "message": "merchantTin and posNo are required."}

    settings = PosSettings(
        merchant_tin=str(merchant_tin),
        pos_no=str(pos_no),
        district_code=str(payload.get("districtCode") or payload.get("district_code") or ""),
        branch_no=str(payload.get("branchNo") or payload.get("branch_no") or ""),
        bill_id_suffix=str(payload.get("billIdSuffix") or payload.get("bill_id_suffix") or "01"),
    )

    try:
        saved = ReceiptRepository().upsert_settings(settings)
    except frappe.ValidationError as e:
        _set_status(400)
        return {"success": False, "message": str(e)}

    return {"success": True, "data": saved.to_dict() if saved else None}


@frappe.whitelist(methods=["POST", "DELETE"])
@log_action("Delete Settings")
def delete_settings(merchant_tin=None):
    if not merchant_tin:
        _set_status(400)
        return {"success": False, "message": "merchantTin is required to delete."}

    ReceiptRepository().delete_settings(merchant_tin)
    return {"success": True, "message": f"POS API settings for merchantTin={merchant_tin} deleted."}


# =========================================================================
# Public eBarimt Info
# =========================================================================

def _info(call, failure_message: str) -> dict:
    try:
        return {"success": True, "data": call()}
    except PosApiError as e:
        get_logger().warning(f"{failure_message}: {e.message}")
        _set_status(500)
        return {"success": False, "message": e.message or failure_message}


@frappe.whitelist()
def get_branches():
    """District / branch codes"""
    return _info(lambda: get_info_client().get_branches(), "Failed to fetch branch info")


@frappe.whitelist()
def get_tin_by_regno(reg_no=None):
    """TIN for a registration number"""
    if not reg_no:
        _set_status(400)
        return {"success": False, "message": "regNo is required"}
    return _info(lambda: get_info_client().get_tin_by_regno(reg_no), "Failed to fetch TIN")


@frappe.whitelist()
def get_taxpayer_info(tin=None):
    """Taxpayer name and VAT / city tax payer flags"""
    if not tin:
        _set_status(400)
        return {"success": False, "message": "tin is required"}
    return _info(lambda: get_info_client().get_taxpayer_info(tin), "Failed to fetch taxpayer info")


@frappe.whitelist()
def get_combined_tin_info(reg_no=None):
    """Registration number -> taxpayer info in one call"""
    if not reg_no:
        _set_status(400)
        return {"success": False, "message": "regNo is required"}

    info = get_info_client().get_combined_tin_info(reg_no)
    if info is None:
        _set_status(404)
        return {"success": False, "message": _("No taxpayer found for {0}").format(reg_no)}
    return {"success": True, "data": info}


@frappe.whitelist()
def get_product_tax_codes():
    """VAT exempt / zero-rate product codes"""
    return _info(lambda: get_info_client().get_product_tax_codes(), "Failed to fetch product tax codes")
