# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Scheduled Tasks for eBarimt Bridge
"""

from ebarimt_bridge.logger import log_error, log_info, log_warning


def send_bills_hourly():
    """
    Hourly flush of receipts held by the POS API
    Uses sendData so receipts registered offline reach the central system
    """
    from ebarimt_bridge.api.api import get_bill_service

    result = get_bill_service().send_bills()

    if result.success:
        log_info("Hourly sendData completed", {"message": result.message})
    else:
        log_error("Hourly sendData failed", {"message": result.message})

    return result.to_dict()


def check_configuration_daily():
    """Report configuration problems to the Error Log once a day"""
    from ebarimt_bridge.utils.config import validate_config

    result = validate_config()
    for issue in result.get_errors():
        log_error(f"Config error - {issue.field}: {issue.message}")
    for issue in result.get_warnings():
        log_warning(f"Config warning - {issue.field}: {issue.message}")
