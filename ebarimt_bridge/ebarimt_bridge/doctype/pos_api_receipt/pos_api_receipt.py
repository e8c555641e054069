# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

import frappe
from frappe import _
from frappe.model.document import Document


class POSAPIReceipt(Document):
    def validate(self):
        self.merchant_tin = self.merchant_tin or ""

        if not self.success and not (self.error_message or self.response_message):
            self.error_message = _("POS API did not confirm the receipt")

    @frappe.whitelist()
    def cancel_receipt(self):
        """Cancel this receipt on the POS API"""
        if not self.success or not self.ebarimt_id:
            frappe.throw(_("Only registered receipts can be cancelled"))

        from ebarimt_bridge.api.api import get_bill_service

        result = get_bill_service().delete_bill(self.ebarimt_id)
        if not result.success:
            frappe.throw(result.message)

        frappe.msgprint(_("Receipt cancelled"))
        return result.to_dict()


def on_doctype_update():
    frappe.db.add_unique("POS API Receipt", ["order_id", "merchant_tin"], constraint_name="unique_order_merchant")
