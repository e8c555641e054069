# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
eBarimt Bridge - POS API bridge for Mongolian VAT receipts

Frontends post simplified bills; the bridge computes taxes, reconciles
payments and registers the receipt with the local POS API (ST-Ebarimt).
"""

app_name = "ebarimt_bridge"
app_title = "eBarimt Bridge"
app_publisher = "Digital Consulting Service LLC (Mongolia)"
app_description = "eBarimt POS API bridge: tax calculation, duplicate guard and receipt logging"
app_email = "dev@frappe.mn"
app_license = "gpl-3.0"
app_version = "1.0.0"

required_apps = ["frappe"]

# Installation
after_install = "ebarimt_bridge.install.after_install"
before_uninstall = "ebarimt_bridge.install.before_uninstall"

# Scheduled Tasks
scheduler_events = {
    "hourly": [
        "ebarimt_bridge.tasks.send_bills_hourly"
    ],
    "daily": [
        "ebarimt_bridge.tasks.check_configuration_daily"
    ]
}
