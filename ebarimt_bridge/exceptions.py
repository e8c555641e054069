# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3
"""
eBarimt Bridge Exception Hierarchy

Provides a consistent exception hierarchy for bridge operations outside the
bill engine (which reports problems as results, not exceptions).
All custom exceptions inherit from EBarimtBridgeError for easy catching.
"""

from __future__ import annotations

from typing import Any


class EBarimtBridgeError(Exception):
    """Base exception for all bridge errors.

    Example:
        try:
            service.delete_bill(ebarimt_id)
        except EBarimtBridgeError as e:
            return e.to_dict()
    """

    def __init__(self, message: str, code: str | None = None, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details
        }


class PosApiError(EBarimtBridgeError):
    """Error response from the POS API or the public info API.

    Attributes:
        status_code: HTTP (or envelope) status code
        response_data: Raw response data from API
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        response_data: Any = None
    ):
        super().__init__(message, code)
        self.status_code = status_code
        self.response_data = response_data


class DuplicateOrderError(EBarimtBridgeError):
    """An orderId was already stored for the merchant.

    Raised by the repository when the unique (order_id, merchant_tin)
    index rejects an insert.
    """

    def __init__(self, order_id: str, merchant_tin: str | None = None):
        super().__init__(
            f"orderId {order_id} was already submitted",
            code="DUPLICATE_ORDER",
            details={"order_id": order_id, "merchant_tin": merchant_tin},
        )
        self.order_id = order_id
        self.merchant_tin = merchant_tin


class ConfigError(EBarimtBridgeError):
    """Required settings are missing or invalid."""
    pass


# Export all exceptions
__all__ = [
    "ConfigError",
    "DuplicateOrderError",
    "EBarimtBridgeError",
    "PosApiError",
]
