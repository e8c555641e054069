# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

import frappe
from frappe import _
from frappe.model.document import Document

from ebarimt_bridge.core.validators import validate_tin


class POSAPISettings(Document):
    def validate(self):
        self.merchant_tin = (self.merchant_tin or "").strip()
        self.pos_no = (self.pos_no or "").strip()

        if not validate_tin(self.merchant_tin).is_valid:
            frappe.throw(_("Merchant TIN must be 7 to 14 digits"))

        if not self.bill_id_suffix:
            self.bill_id_suffix = "01"

    @frappe.whitelist()
    def test_connection(self):
        """Ask the POS API for its info and report whether this merchant is registered"""
        from ebarimt_bridge.api.client import PosApiClient
        from ebarimt_bridge.utils.config import get_config

        config = get_config()
        result = PosApiClient(config.pos_api_base_url, config.timeout).get_info()
        if not result.success:
            return {"success": False, "message": result.message}

        info = result.data or {}
        merchants = [m.get("tin") for m in info.get("merchants", []) if isinstance(m, dict)]
        return {
            "success": True,
            "message": _("Connected successfully!"),
            "data": {
                "operator": info.get("operatorName"),
                "pos_no": info.get("posNo"),
                "lotteries": info.get("leftLotteries"),
                "merchant_registered": self.merchant_tin in merchants,
            },
        }
