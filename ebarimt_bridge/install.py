# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Installation script for eBarimt Bridge
"""

import frappe

from ebarimt_bridge.utils.config import get_config, validate_config


def after_install():
    """Run after app installation"""
    config = get_config()
    result = validate_config()

    print("=" * 60)
    print("eBarimt Bridge installed successfully!")
    print("=" * 60)
    print(f"POS API: {config.pos_api_base_url}")
    print(f"Info API: {config.info_api_base_url}")
    for issue in result.issues:
        print(f"  [{issue.severity}] {issue.field}: {issue.message}")
    print("")
    print("Set pos_api_base_url in site_config.json to point at the POS API,")
    print("then create POS API Settings for each merchant TIN.")
    print("=" * 60)


def before_uninstall():
    """Run before app uninstallation"""
    from ebarimt_bridge.api.http_client import close_sessions

    close_sessions()
    frappe.clear_cache()
    print("eBarimt Bridge uninstalled.")
