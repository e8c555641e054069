# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Repository tests against a Frappe site
Run with: bench run-tests --app ebarimt_bridge --module ebarimt_bridge.tests.test_repository
"""

import frappe
from frappe.tests.utils import FrappeTestCase

from ebarimt_bridge.core.types import PosSettings
from ebarimt_bridge.exceptions import DuplicateOrderError
from ebarimt_bridge.repository import (
    RECEIPT_DOCTYPE,
    RETURN_LOG_DOCTYPE,
    SETTINGS_DOCTYPE,
    UPDATE_LOG_DOCTYPE,
    ReceiptRepository,
    list_records,
)

MERCHANT_TIN = "37900846788"
TEST_SETTINGS_TIN = "99990000001"


class TestReceiptRepository(FrappeTestCase):
    """POS API Receipt persistence."""

    def setUp(self):
        self.repository = ReceiptRepository()
        self.order_id = f"TEST-{frappe.generate_hash(length=8)}"

    def tearDown(self):
        for doctype in (RECEIPT_DOCTYPE, RETURN_LOG_DOCTYPE, UPDATE_LOG_DOCTYPE):
            frappe.db.delete(doctype, {"order_id": self.order_id})
        frappe.db.delete(SETTINGS_DOCTYPE, {"merchant_tin": TEST_SETTINGS_TIN})
        frappe.db.commit()

    def save(self, response=None, success=True, merchant_tin=MERCHANT_TIN, error_message=None):
        self.repository.save_receipt(
            order_id=self.order_id,
            merchant_tin=merchant_tin,
            request={"type": "B2C_RECEIPT", "totalAmount": 1100.0, "totalVAT": 100.0, "totalCityTax": 0.0},
            response=response,
            success=success,
            error_message=error_message,
        )

    def test_doctypes_exist(self):
        for doctype in (RECEIPT_DOCTYPE, RETURN_LOG_DOCTYPE, UPDATE_LOG_DOCTYPE, SETTINGS_DOCTYPE):
            self.assertTrue(frappe.db.exists("DocType", doctype), doctype)

    def test_save_and_find(self):
        self.save({"id": "EB-1", "status": "SUCCESS", "date": "2024-06-01 10:00:00"})

        bill = self.repository.find_by_order(self.order_id, MERCHANT_TIN)
        self.assertIsNotNone(bill)
        self.assertEqual(bill.ebarimt_id, "EB-1")
        self.assertTrue(bill.success)
        self.assertEqual(bill.total_amount, 1100.0)
        self.assertEqual(bill.response_date.year, 2024)

        self.assertEqual(self.repository.find_by_ebarimt_id("EB-1").order_id, self.order_id)
        self.assertEqual(self.repository.find_latest_by_order(self.order_id).ebarimt_id, "EB-1")
        self.assertIsNone(self.repository.find_by_order(self.order_id, "1111111"))

    def test_save_is_an_upsert(self):
        self.save(None, success=False, error_message="Network error: refused")
        self.save({"id": "EB-2", "status": "SUCCESS"})

        self.assertEqual(frappe.db.count(RECEIPT_DOCTYPE, {"order_id": self.order_id}), 1)
        bill = self.repository.find_by_order(self.order_id, MERCHANT_TIN)
        self.assertEqual(bill.ebarimt_id, "EB-2")
        self.assertTrue(bill.success)

    def test_same_order_for_two_merchants(self):
        self.save({"id": "EB-A", "status": "SUCCESS"})
        self.save({"id": "EB-B", "status": "SUCCESS"}, merchant_tin="1111111")
        self.assertEqual(frappe.db.count(RECEIPT_DOCTYPE, {"order_id": self.order_id}), 2)

    def test_unique_index_rejects_second_insert(self):
        self.save({"id": "EB-1", "status": "SUCCESS"})

        doc = frappe.new_doc(RECEIPT_DOCTYPE)
        doc.update({"order_id": self.order_id, "merchant_tin": MERCHANT_TIN, "success": 0})
        with self.assertRaises((frappe.DuplicateEntryError, frappe.UniqueValidationError)):
            doc.insert(ignore_permissions=True)

    def test_duplicate_order_error_shape(self):
        error = DuplicateOrderError(self.order_id, MERCHANT_TIN)
        self.assertEqual(error.to_dict()["code"], "DUPLICATE_ORDER")

    def test_update_log_ignores_repeats(self):
        for _ in range(2):
            self.repository.save_update_log(self.order_id, "EB-1", "EB-2", "2024-06-01 10:00:00", MERCHANT_TIN)

        updates = self.repository.list_updates(self.order_id)
        self.assertEqual(len(updates), 1)
        self.assertEqual(updates[0].new_id, "EB-2")

    def test_return_log(self):
        self.repository.save_return_log(self.order_id, "EB-1", MERCHANT_TIN, True, "Data deleted successfully")

        result = list_records(
            RETURN_LOG_DOCTYPE,
            fields=["order_id", "ebarimt_id", "return_date", "success"],
            filters={"order_id": self.order_id},
        )
        self.assertTrue(result["ok"])
        self.assertEqual(result["meta"]["total"], 1)
        self.assertIsNotNone(result["data"][0].return_date)

    def test_settings_crud(self):
        saved = self.repository.upsert_settings(PosSettings(merchant_tin=TEST_SETTINGS_TIN, pos_no="POS-1"))
        self.assertEqual(saved.bill_id_suffix, "01")

        updated = self.repository.upsert_settings(
            PosSettings(merchant_tin=TEST_SETTINGS_TIN, pos_no="POS-2", district_code="2501", bill_id_suffix="02")
        )
        self.assertEqual(updated.pos_no, "POS-2")
        self.assertEqual(updated.bill_id_suffix, "02")
        self.assertEqual(self.repository.get_settings().merchant_tin, TEST_SETTINGS_TIN)

        self.repository.delete_settings(TEST_SETTINGS_TIN)
        self.assertIsNone(self.repository.get_settings(TEST_SETTINGS_TIN))

    def test_settings_reject_bad_tin(self):
        with self.assertRaises(frappe.ValidationError):
            self.repository.upsert_settings(PosSettings(merchant_tin="12", pos_no="POS-1"))
