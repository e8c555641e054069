# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Frappe persistence for the bridge

One POS API Receipt per (order_id, merchant_tin), plus append-only return
and update logs and the per-merchant POS API Settings.
"""

from __future__ import annotations

import json
from typing import Any

import frappe
from frappe.utils import flt, get_datetime, now_datetime

from ebarimt_bridge.core.types import ExistingBill, PosSettings
from ebarimt_bridge.exceptions import DuplicateOrderError

RECEIPT_DOCTYPE = "POS API Receipt"
RETURN_LOG_DOCTYPE = "POS API Return Log"
UPDATE_LOG_DOCTYPE = "POS API Update Log"
SETTINGS_DOCTYPE = "POS API Settings"

RECEIPT_FIELDS = [
    "name", "order_id", "merchant_tin", "ebarimt_id", "total_amount", "total_vat",
    "total_city_tax", "receipt_type", "success", "error_message", "response_status",
    "response_message", "response_date", "creation", "modified",
]


def _to_existing(row) -> ExistingBill | None:
    if not row:
        return None
    return ExistingBill(
        order_id=row.order_id,
        merchant_tin=row.merchant_tin or "",
        ebarimt_id=row.ebarimt_id or None,
        total_amount=flt(row.total_amount),
        created_at=get_datetime(row.creation) if row.creation else None,
        success=bool(row.success),
        response_date=get_datetime(row.response_date) if row.response_date else None,
    )


def _to_settings(row) -> PosSettings | None:
    if not row:
        return None
    return PosSettings(
        merchant_tin=row.merchant_tin,
        pos_no=row.pos_no,
        district_code=row.district_code or "",
        branch_no=row.branch_no or "",
        bill_id_suffix=row.bill_id_suffix or "01",
        updated_at=get_datetime(row.modified) if row.modified else None,
    )


def _parse_date(value):
    if not value:
        return now_datetime()
    return get_datetime(value)


class ReceiptRepository:
    """Storage used by BillService"""

    # =========================================================================
    # Receipts
    # =========================================================================

    def _first_receipt(self, filters: dict) -> ExistingBill | None:
        rows = frappe.get_all(
            RECEIPT_DOCTYPE,
            filters=filters,
            fields=["order_id", "merchant_tin", "ebarimt_id", "total_amount", "success",
                    "response_date", "creation"],
            order_by="modified desc",
            limit=1,
        )
        return _to_existing(rows[0] if rows else None)

    def find_by_order(self, order_id: str, merchant_tin: str) -> ExistingBill | None:
        return self._first_receipt({"order_id": order_id, "merchant_tin": merchant_tin or ""})

    def find_latest_by_order(self, order_id: str) -> ExistingBill | None:
        return self._first_receipt({"order_id": order_id})

    def find_by_ebarimt_id(self, ebarimt_id: str) -> ExistingBill | None:
        return self._first_receipt({"ebarimt_id": ebarimt_id})

    def save_receipt(
        self,
        order_id: str,
        merchant_tin: str,
        request: dict,
        response: dict | None,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        """Insert or update the receipt row for (order_id, merchant_tin)"""
        merchant_tin = merchant_tin or ""
        name = frappe.db.get_value(RECEIPT_DOCTYPE, {"order_id": order_id, "merchant_tin": merchant_tin}, "name")
        doc = frappe.get_doc(RECEIPT_DOCTYPE, name) if name else frappe.new_doc(RECEIPT_DOCTYPE)

        response = response or {}
        doc.update({
            "order_id": order_id,
            "merchant_tin": merchant_tin,
            "request_json": json.dumps(request, ensure_ascii=False, default=str),
            "response_json": json.dumps(response, ensure_ascii=False, default=str) if response else None,
            "ebarimt_id": response.get("id"),
            "total_amount": flt(request.get("totalAmount")),
            "total_vat": flt(request.get("totalVAT")),
            "total_city_tax": flt(request.get("totalCityTax")),
            "receipt_type": request.get("type") or "",
            "success": 1 if success else 0,
            "error_message": error_message,
            "response_status": response.get("status"),
            "response_message": response.get("message"),
            "response_date": get_datetime(response["date"]) if response.get("date") else None,
        })

        try:
            doc.save(ignore_permissions=True)
        except (frappe.DuplicateEntryError, frappe.UniqueValidationError):
            frappe.db.rollback()
            raise DuplicateOrderError(order_id, merchant_tin)

        frappe.db.commit()

    # =========================================================================
    # Return / update logs
    # =========================================================================

    def save_return_log(
        self,
        order_id: str,
        ebarimt_id: str,
        merchant_tin: str,
        success: bool,
        message: str,
        return_date=None,
        error_code: str | None = None,
    ) -> None:
        frappe.get_doc({
            "doctype": RETURN_LOG_DOCTYPE,
            "order_id": order_id,
            "ebarimt_id": ebarimt_id,
            "merchant_tin": merchant_tin or "",
            "return_date": _parse_date(return_date),
            "success": 1 if success else 0,
            "message": message,
            "error_code": error_code,
        }).insert(ignore_permissions=True)
        frappe.db.commit()

    def save_update_log(self, order_id: str, old_id: str, new_id: str, date: Any, merchant_tin: str) -> None:
        """Record that new_id replaced old_id; repeated links are ignored"""
        if frappe.db.exists(UPDATE_LOG_DOCTYPE, {"order_id": order_id, "old_id": old_id, "new_id": new_id}):
            return

        frappe.get_doc({
            "doctype": UPDATE_LOG_DOCTYPE,
            "order_id": order_id,
            "old_id": old_id,
            "new_id": new_id,
            "date": _parse_date(date),
            "merchant_tin": merchant_tin or "",
        }).insert(ignore_permissions=True)
        frappe.db.commit()

    def list_updates(self, order_id: str) -> list[dict]:
        return frappe.get_all(
            UPDATE_LOG_DOCTYPE,
            filters={"order_id": order_id},
            fields=["order_id", "old_id", "new_id", "date", "merchant_tin", "creation"],
            order_by="date desc, creation desc",
        )

    # =========================================================================
    # Settings
    # =========================================================================

    def get_settings(self, merchant_tin: str | None = None) -> PosSettings | None:
        """Settings for a merchant, or the most recently updated one"""
        fields = ["merchant_tin", "pos_no", "district_code", "branch_no", "bill_id_suffix", "modified"]
        filters = {"merchant_tin": merchant_tin} if merchant_tin else {}
        rows = frappe.get_all(SETTINGS_DOCTYPE, filters=filters, fields=fields, order_by="modified desc", limit=1)
        return _to_settings(rows[0] if rows else None)

    def upsert_settings(self, settings: PosSettings) -> PosSettings:
        if frappe.db.exists(SETTINGS_DOCTYPE, settings.merchant_tin):
            doc = frappe.get_doc(SETTINGS_DOCTYPE, settings.merchant_tin)
        else:
            doc = frappe.new_doc(SETTINGS_DOCTYPE)
            doc.merchant_tin = settings.merchant_tin

        doc.update({
            "pos_no": settings.pos_no,
            "district_code": settings.district_code or "",
            "branch_no": settings.branch_no or "",
            "bill_id_suffix": settings.bill_id_suffix or "01",
        })
        doc.save(ignore_permissions=True)
        frappe.db.commit()
        return self.get_settings(settings.merchant_tin)

    def delete_settings(self, merchant_tin: str) -> None:
        frappe.delete_doc(SETTINGS_DOCTYPE, merchant_tin, ignore_permissions=True, ignore_missing=True)
        frappe.db.commit()


def list_records(
    doctype: str,
    fields: list[str],
    filters: dict | None = None,
    order_by: str = "creation desc",
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """Paginated listing in the shape {ok, meta: {total, limit, offset}, data}"""
    filters = filters or {}
    data = frappe.get_all(
        doctype,
        filters=filters,
        fields=fields,
        order_by=order_by,
        limit_start=offset,
        limit_page_length=limit,
    )
    return {
        "ok": True,
        "meta": {"total": frappe.db.count(doctype, filters=filters), "limit": limit, "offset": offset},
        "data": data,
    }
