# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

import importlib.util

# Site-bound tests run under `bench run-tests`; plain pytest skips them without frappe.
collect_ignore = []

if importlib.util.find_spec("frappe") is None:
    collect_ignore += [
        "ebarimt_bridge/tests/test_repository.py",
        "ebarimt_bridge/tests/test_api.py",
    ]
