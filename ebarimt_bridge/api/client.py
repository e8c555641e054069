# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
"""
eBarimt API Clients

PosApiClient talks to the POS API (ST-Ebarimt) running next to the till.
EbarimtInfoClient reads the public taxpayer / branch / tax-code endpoints.
"""

from datetime import datetime
from urllib.parse import quote

from ebarimt_bridge.api.http_client import DEFAULT_TIMEOUT, HttpResult, execute_request
from ebarimt_bridge.exceptions import PosApiError

DEFAULT_POS_API_URL = "http://127.0.0.1:7080"
DEFAULT_INFO_API_URL = "https://api.ebarimt.mn/api"
RECEIPT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_receipt_date(value=None):
	"""Format a receipt date the way the POS API expects (yyyy-MM-dd HH:mm:ss)"""
	if value is None:
		value = datetime.now()
	if isinstance(value, str):
		value = datetime.fromisoformat(value.replace("Z", "+00:00"))
	return value.strftime(RECEIPT_DATE_FORMAT)


class PosApiClient:
	"""
	POS API client

	Every method returns an HttpResult; nothing here raises for network or
	HTTP failures.
	"""

	def __init__(self, base_url=DEFAULT_POS_API_URL, timeout=DEFAULT_TIMEOUT):
		self.base_url = base_url.rstrip("/")
		self.timeout = timeout

	def _url(self, path):
		return f"{self.base_url}/rest/{path}"

	def submit(self, payload) -> HttpResult:
		"""
		Register a receipt

		Args:
			payload: DirectBillRequest.to_payload() (no orderId)

		Returns:
			HttpResult whose data is the POS API response: id, lottery,
			qrData, status (SUCCESS / ERROR / PAYMENT), message, date
		"""
		return execute_request("POST", self._url("receipt"), data=payload, timeout=self.timeout)

	def delete(self, ebarimt_id, receipt_date) -> HttpResult:
		"""
		Cancel a receipt

		Args:
			ebarimt_id: 33-digit receipt ID (DDTD)
			receipt_date: Receipt date (datetime or yyyy-MM-dd HH:mm:ss)
		"""
		if not isinstance(receipt_date, str):
			receipt_date = format_receipt_date(receipt_date)

		return execute_request(
			"DELETE",
			self._url("receipt"),
			data={"id": ebarimt_id, "date": receipt_date},
			deserialize=None,
			timeout=self.timeout,
		)

	def send_data(self) -> HttpResult:
		"""Push pending receipts from the POS API to the central system"""
		return execute_request("GET", self._url("sendData"), deserialize=None, timeout=self.timeout)

	def get_info(self) -> HttpResult:
		"""Operator, merchants, remaining lotteries, payment types"""
		return execute_request("GET", self._url("info"), timeout=self.timeout)


class EbarimtInfoClient:
	"""
	Public eBarimt info API

	Responses come wrapped as {"msg", "status", "data"}; anything but
	status 200 raises PosApiError.
	"""

	def __init__(self, base_url=DEFAULT_INFO_API_URL, timeout=DEFAULT_TIMEOUT):
		self.base_url = base_url.rstrip("/")
		self.timeout = timeout

	def _get(self, path):
		result = execute_request("GET", f"{self.base_url}/{path}", timeout=self.timeout)
		if not result.success:
			raise PosApiError(
				f"ebarimt api error: {result.message}",
				status_code=result.status_code,
			)

		envelope = result.data if isinstance(result.data, dict) else {}
		if envelope.get("status") != 200:
			raise PosApiError(
				f"ebarimt api returned non-200 status: {envelope.get('status')} - {envelope.get('msg')}",
				status_code=envelope.get("status"),
				response_data=result.data,
			)
		return envelope.get("data")

	def get_branches(self):
		"""District / branch codes"""
		return self._get("info/check/getBranchInfo")

	def get_tin_by_regno(self, reg_no):
		"""TIN for a registration number"""
		reg_no = quote((reg_no or "").strip())
		return self._get(f"info/check/getTinInfo?regNo={reg_no}")

	def get_taxpayer_info(self, tin):
		"""Taxpayer name, VAT / city tax payer flags"""
		tin = quote((tin or "").strip())
		return self._get(f"info/check/getInfo?tin={tin}")

	def get_product_tax_codes(self):
		"""VAT exempt / zero-rate product codes"""
		return self._get("receipt/receipt/getProductTaxCode")

	def get_combined_tin_info(self, reg_no):
		"""
		Registration number -> TIN -> taxpayer info

		Returns None when the registration number is unknown or either
		lookup fails.
		"""
		try:
			tin = self.get_tin_by_regno(reg_no)
			if not tin:
				return None
			return self.get_taxpayer_info(str(tin))
		except PosApiError:
			return None
