# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
eBarimt Bridge API Module
POS API / info API clients; whitelisted endpoints live in api.api
"""

from ebarimt_bridge.api.client import EbarimtInfoClient, PosApiClient, format_receipt_date
from ebarimt_bridge.api.http_client import HttpResult, execute_request

__all__ = [
    "EbarimtInfoClient",
    "HttpResult",
    "PosApiClient",
    "execute_request",
    "format_receipt_date",
]
