# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

from frappe.model.document import Document
from frappe.utils import now_datetime


class POSAPIReturnLog(Document):
    def before_insert(self):
        if not self.return_date:
            self.return_date = now_datetime()
