# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

import frappe
from frappe import _
from frappe.model.document import Document


class POSAPIUpdateLog(Document):
    def validate(self):
        if self.old_id == self.new_id:
            frappe.throw(_("A receipt cannot replace itself"))


def on_doctype_update():
    frappe.db.add_unique(
        "POS API Update Log", ["order_id", "old_id", "new_id"], constraint_name="unique_update_link"
    )
