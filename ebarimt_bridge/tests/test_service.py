# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
BillService tests against in-memory storage and a scripted POS API
Run with: pytest ebarimt_bridge/tests/test_service.py
"""

import copy
import logging
import unittest
from datetime import datetime

from ebarimt_bridge.api.http_client import HttpResult
from ebarimt_bridge.core.duplicate_checker import (
    DuplicateAction,
    check_order_id_duplicate,
    resolve_duplicate,
)
from ebarimt_bridge.core.types import ExistingBill, PosSettings
from ebarimt_bridge.exceptions import DuplicateOrderError
from ebarimt_bridge.service import BillService, page_bounds

MERCHANT_TIN = "37900846788"

BILL = {
    "orderId": "ORD-1",
    "merchantTin": MERCHANT_TIN,
    "posNo": "10011702",
    "districtCode": "3505",
    "branchNo": "001",
    "receipts": [{"taxType": "VAT_ABLE", "items": [{"name": "Tea", "qty": 1, "totalAmount": 1100}]}],
    "payments": [{"code": "CASH", "status": "PAID", "paidAmount": 1100}],
}


def make_bill(**overrides):
    bill = copy.deepcopy(BILL)
    bill.update(overrides)
    return bill


def accepted(ebarimt_id="EB-NEW", date="2024-06-01 10:00:00"):
    return HttpResult(
        success=True,
        message="Data posted successfully",
        data={"id": ebarimt_id, "status": "SUCCESS", "date": date, "lottery": "AB 12345678"},
    )


class FakeRepository:
    """In-memory storage keyed by (order_id, merchant_tin)"""

    def __init__(self, settings=None):
        self.bills = {}
        self.saved = []
        self.returns = []
        self.updates = []
        self.settings = settings
        self.raise_duplicate = False

    def add(self, bill):
        self.bills[(bill.order_id, bill.merchant_tin)] = bill

    def find_by_order(self, order_id, merchant_tin):
        return self.bills.get((order_id, merchant_tin))

    def find_latest_by_order(self, order_id):
        matches = [bill for (oid, _), bill in self.bills.items() if oid == order_id]
        return matches[-1] if matches else None

    def find_by_ebarimt_id(self, ebarimt_id):
        return next((b for b in self.bills.values() if b.ebarimt_id == ebarimt_id), None)

    def save_receipt(self, order_id, merchant_tin, request, response, success, error_message=None):
        if self.raise_duplicate:
            raise DuplicateOrderError(order_id, merchant_tin)
        self.saved.append({
            "order_id": order_id,
            "merchant_tin": merchant_tin,
            "request": request,
            "response": response,
            "success": success,
            "error_message": error_message,
        })
        self.add(ExistingBill(
            order_id=order_id,
            merchant_tin=merchant_tin,
            ebarimt_id=(response or {}).get("id"),
            total_amount=request["totalAmount"],
            success=success,
        ))

    def save_return_log(self, order_id, ebarimt_id, merchant_tin, success, message, return_date=None, error_code=None):
        self.returns.append({"order_id": order_id, "ebarimt_id": ebarimt_id, "success": success})

    def save_update_log(self, order_id, old_id, new_id, date, merchant_tin):
        self.updates.append((order_id, old_id, new_id))

    def get_settings(self, merchant_tin=None):
        if self.settings and (merchant_tin is None or merchant_tin == self.settings.merchant_tin):
            return self.settings
        return None


class FakeClient:
    """Scripted POS API"""

    def __init__(self, submit_result=None):
        self.submit_result = submit_result or accepted()
        self.submitted = []
        self.deleted = []

    def submit(self, payload):
        self.submitted.append(payload)
        return self.submit_result

    def delete(self, ebarimt_id, receipt_date):
        self.deleted.append((ebarimt_id, receipt_date))
        return HttpResult(success=True, message="Data deleted successfully", data="")

    def send_data(self):
        return HttpResult(success=True, message="Data retrieved successfully", data="")


class ServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.repository = FakeRepository()
        self.client = FakeClient()
        self.service = BillService(self.repository, self.client, logger=logging.getLogger("ebarimt_bridge.tests"))


class TestAddBill(ServiceTestCase):
    """Submission through the whole pipeline."""

    def test_success(self):
        result = self.service.add_bill(make_bill())

        self.assertTrue(result.success)
        self.assertEqual(result.status, 1)
        self.assertEqual(result.data["id"], "EB-NEW")
        self.assertEqual(result.data["orderId"], "ORD-1")
        self.assertEqual(result.to_dict()["status"], 1)

        payload = self.client.submitted[0]
        self.assertNotIn("orderId", payload)
        self.assertEqual(payload["totalVAT"], 100.00)

        saved = self.repository.saved[0]
        self.assertTrue(saved["success"])
        self.assertEqual(saved["order_id"], "ORD-1")
        self.assertEqual(saved["merchant_tin"], MERCHANT_TIN)
        self.assertEqual(self.repository.updates, [])

    def test_malformed_request(self):
        result = self.service.add_bill("not a bill")
        self.assertFalse(result.success)
        self.assertEqual(result.status, 0)
        self.assertEqual(result.http_status, 400)
        self.assertEqual(self.client.submitted, [])

    def test_validation_failure_is_not_submitted(self):
        result = self.service.add_bill(make_bill(posNo=""))
        self.assertEqual(result.message, "posNo is required")
        self.assertEqual(result.http_status, 400)
        self.assertEqual(self.client.submitted, [])
        self.assertEqual(self.repository.saved, [])

    def test_headers_filled_from_settings(self):
        self.repository.settings = PosSettings(
            merchant_tin=MERCHANT_TIN, pos_no="POS-9", district_code="2501", branch_no="007"
        )
        bill = make_bill()
        for key in ("posNo", "districtCode", "branchNo"):
            del bill[key]

        result = self.service.add_bill(bill)

        self.assertTrue(result.success, result.message)
        payload = self.client.submitted[0]
        self.assertEqual(payload["posNo"], "POS-9")
        self.assertEqual(payload["districtCode"], "2501")
        self.assertEqual(payload["branchNo"], "007")
        self.assertEqual(payload["billIdSuffix"], "01")
        self.assertEqual(payload["receipts"][0]["merchantTin"], MERCHANT_TIN)

    def test_merchant_tin_from_latest_settings(self):
        self.repository.settings = PosSettings(merchant_tin=MERCHANT_TIN, pos_no="POS-9", district_code="2501", branch_no="007")
        bill = make_bill()
        del bill["merchantTin"]

        self.assertTrue(self.service.add_bill(bill).success)
        self.assertEqual(self.client.submitted[0]["merchantTin"], MERCHANT_TIN)

    def test_request_values_win_over_settings(self):
        self.repository.settings = PosSettings(merchant_tin=MERCHANT_TIN, pos_no="POS-9", bill_id_suffix="05")
        self.service.add_bill(make_bill(billIdSuffix="03"))
        payload = self.client.submitted[0]
        self.assertEqual(payload["posNo"], "10011702")
        self.assertEqual(payload["billIdSuffix"], "03")

    def test_upstream_error_status(self):
        self.client.submit_result = HttpResult(
            success=True, data={"status": "ERROR", "message": "Merchant not registered"}
        )

        result = self.service.add_bill(make_bill())

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Merchant not registered")
        self.assertEqual(result.data["orderId"], "ORD-1")
        self.assertFalse(self.repository.saved[0]["success"])

    def test_network_failure_is_stored(self):
        self.client.submit_result = HttpResult(success=False, message="Network error: refused")

        result = self.service.add_bill(make_bill())

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Network error: refused")
        self.assertIsNone(result.data)
        saved = self.repository.saved[0]
        self.assertIsNone(saved["response"])
        self.assertEqual(saved["error_message"], "Network error: refused")

    def test_concurrent_insert_conflict(self):
        self.repository.raise_duplicate = True
        result = self.service.add_bill(make_bill())
        self.assertFalse(result.success)
        self.assertEqual(result.http_status, 409)

    def test_invoice_type(self):
        self.service.add_bill_invoice(make_bill(customerTin="5317878"))
        self.service.add_bill_invoice(make_bill(orderId="ORD-2"))

        self.assertEqual(self.client.submitted[0]["type"], "B2B_INVOICE")
        self.assertEqual(self.client.submitted[0]["payments"], [])
        self.assertEqual(self.client.submitted[1]["type"], "B2C_INVOICE")


class TestDuplicates(ServiceTestCase):
    """Repeated orderIds."""

    def test_rejected_without_force(self):
        self.repository.add(ExistingBill("ORD-1", MERCHANT_TIN, "EB-OLD", 1100.0, success=True))

        result = self.service.add_bill(make_bill())

        self.assertFalse(result.success)
        self.assertEqual(result.http_status, 409)
        self.assertEqual(result.message, "orderId ORD-1 was already submitted (ebarimtId: EB-OLD)")
        self.assertEqual(result.data["existingBill"]["ebarimtId"], "EB-OLD")
        self.assertEqual(self.client.submitted, [])

    def test_other_merchant_is_not_a_duplicate(self):
        self.repository.add(ExistingBill("ORD-1", "1111111", "EB-OLD", 1100.0, success=True))
        self.assertTrue(self.service.add_bill(make_bill()).success)

    def test_force_supersedes_registered_receipt(self):
        self.repository.add(ExistingBill("ORD-1", MERCHANT_TIN, "EB-OLD", 1100.0, success=True))

        result = self.service.add_bill(make_bill(force=True))

        self.assertTrue(result.success)
        self.assertEqual(self.client.submitted[0]["inactiveId"], "EB-OLD")
        self.assertEqual(self.repository.updates, [("ORD-1", "EB-OLD", "EB-NEW")])

    def test_force_resubmits_failed_attempt(self):
        self.repository.add(ExistingBill("ORD-1", MERCHANT_TIN, None, 1100.0, success=False))

        result = self.service.add_bill(make_bill(force=True))

        self.assertTrue(result.success)
        self.assertEqual(self.client.submitted[0]["inactiveId"], "")
        self.assertEqual(self.repository.updates, [])

    def test_decisions(self):
        existing = ExistingBill("ORD-1", MERCHANT_TIN, "EB-OLD", 10.0, success=True)
        self.repository.add(existing)

        check = check_order_id_duplicate(self.repository, "ORD-1")
        self.assertTrue(check.is_duplicate)
        self.assertIs(check.existing_bill, existing)

        self.assertEqual(resolve_duplicate(check).action, DuplicateAction.REJECT)
        self.assertEqual(resolve_duplicate(check, force=True).inactive_id, "EB-OLD")

        fresh = check_order_id_duplicate(self.repository, "ORD-2", MERCHANT_TIN)
        self.assertFalse(fresh.is_duplicate)
        self.assertEqual(resolve_duplicate(fresh, force=True).action, DuplicateAction.PROCEED)


class TestUpdateBill(ServiceTestCase):
    """Replacing a registered receipt."""

    def test_requires_existing_bill(self):
        result = self.service.update_bill(make_bill())
        self.assertFalse(result.success)
        self.assertEqual(result.http_status, 404)
        self.assertEqual(result.message, "No existing bill found for provided orderId; cannot perform update.")

    def test_chains_previous_id(self):
        self.repository.add(ExistingBill("ORD-1", MERCHANT_TIN, "EB-OLD", 1100.0, success=True))

        result = self.service.update_bill(make_bill())

        self.assertTrue(result.success)
        self.assertEqual(self.client.submitted[0]["inactiveId"], "EB-OLD")
        self.assertEqual(self.repository.updates, [("ORD-1", "EB-OLD", "EB-NEW")])

    def test_explicit_inactive_id(self):
        self.repository.add(ExistingBill("ORD-1", MERCHANT_TIN, "EB-OLD", 1100.0, success=True))
        self.service.update_bill(make_bill(inactiveId="EB-OLDER"))
        self.assertEqual(self.client.submitted[0]["inactiveId"], "EB-OLDER")

    def test_update_invoice(self):
        self.repository.add(ExistingBill("ORD-1", MERCHANT_TIN, "EB-OLD", 1100.0, success=True))
        self.service.update_bill_invoice(make_bill(customerTin="5317878"))
        payload = self.client.submitted[0]
        self.assertEqual(payload["type"], "B2B_INVOICE")
        self.assertEqual(payload["inactiveId"], "EB-OLD")


class TestDeleteAndSend(ServiceTestCase):
    """Cancellation and sendData."""

    def test_requires_id(self):
        result = self.service.delete_bill(None)
        self.assertEqual(result.http_status, 400)
        self.assertEqual(result.message, "ebarimtId is required")

    def test_unknown_id(self):
        result = self.service.delete_bill("EB-404")
        self.assertEqual(result.http_status, 404)

    def test_cancel_uses_stored_date(self):
        self.repository.add(ExistingBill(
            "ORD-1", MERCHANT_TIN, "EB-OLD", 1100.0, success=True,
            response_date=datetime(2024, 6, 1, 10, 0, 0),
        ))

        result = self.service.delete_bill("EB-OLD")

        self.assertTrue(result.success)
        self.assertEqual(result.message, "Data deleted successfully")
        self.assertEqual(self.client.deleted, [("EB-OLD", "2024-06-01 10:00:00")])
        self.assertEqual(self.repository.returns, [{"order_id": "ORD-1", "ebarimt_id": "EB-OLD", "success": True}])

    def test_send_bills(self):
        result = self.service.send_bills()
        self.assertTrue(result.success)
        self.assertEqual(result.to_dict()["status"], 1)


class TestPageBounds(unittest.TestCase):
    """Listing limits."""

    def test_defaults_and_clamping(self):
        self.assertEqual(page_bounds(), (50, 0))
        self.assertEqual(page_bounds("10", "20"), (10, 20))
        self.assertEqual(page_bounds(0, -5), (1, 0))
        self.assertEqual(page_bounds(10000, 3), (500, 3))
        self.assertEqual(page_bounds("abc", "x"), (50, 0))


if __name__ == "__main__":
    unittest.main()
