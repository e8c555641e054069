# pyright: reportMissingImports=false
"""
eBarimt Bridge Logging Utilities

Bill outcomes are persisted in the POS API Receipt / Return Log / Update Log
DocTypes. Everything else goes to:
- ebarimt_bridge.log (site logs folder) for info/warning lines
- Error Log DocType for failures, so they show up in the desk
"""

import json
import time
import traceback
from functools import wraps

import frappe

LOGGER_NAME = "ebarimt_bridge"


def get_logger():
    """Bridge logger (rotating file, 10 backups)."""
    return frappe.logger(LOGGER_NAME, allow_site=True, file_count=10)


def _with_data(message: str, data: dict | None) -> str:
    if not data:
        return message
    return f"{message} | Data: {json.dumps(data, default=str)}"


def log_info(message: str, data: dict | None = None):
    get_logger().info(_with_data(message, data))


def log_warning(message: str, data: dict | None = None):
    get_logger().warning(_with_data(message, data))


def log_error(message: str, data: dict | None = None, exc: Exception | None = None):
    """
    Log an error to the bridge log and to the Error Log DocType.

    Args:
        message: Short description, also used as the Error Log title
        data: Extra context (request payload, error dict)
        exc: The exception being handled; adds the traceback
    """
    details = {"message": message, "data": data}
    if exc is not None:
        details["traceback"] = traceback.format_exc()

    serialized = json.dumps(details, default=str, indent=2)
    get_logger().error(f"{message} | Details: {json.dumps(details, default=str)}")
    frappe.log_error(message=serialized, title=f"eBarimt Bridge: {message[:100]}")


def log_action(action_name: str):
    """
    Log duration of a whitelisted call, and its exception before re-raising.

    Usage:
        @frappe.whitelist()
        @log_action("Save Settings")
        def save_settings(**kwargs):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log_error(f"[{action_name}] {func.__name__} failed: {e!s}", exc=e)
                raise
            get_logger().debug(f"[{action_name}] {func.__name__} took {time.monotonic() - started:.3f}s")
            return result

        return wrapper
    return decorator


def log_bill_submitted(order_id: str, ebarimt_id: str, total_amount: float, bill_type: str):
    log_info("Bill submitted", {
        "order_id": order_id,
        "ebarimt_id": ebarimt_id,
        "total_amount": total_amount,
        "type": bill_type,
    })


def log_bill_returned(order_id: str | None, ebarimt_id: str):
    log_info("Bill returned", {"order_id": order_id, "ebarimt_id": ebarimt_id})


def log_bill_rejected(order_id: str | None, message: str):
    """Validation, duplicate guard or POS API refusal."""
    log_warning("Bill rejected", {"order_id": order_id, "message": message})
