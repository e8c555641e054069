# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
eBarimt Bridge - POS API (ST-Ebarimt) bridge for Frappe

Takes simplified bill requests from POS frontends, computes VAT and city
tax, classifies barcodes, reconciles payments, guards against duplicate
orderIds and forwards the finished document to the POS API.

- core/        pure-Python bill normalization (no Frappe import)
- service.py   orchestration around an injected repository and client
- api/         HTTP executor, POS API and info clients, whitelisted endpoints
"""

__version__ = "1.0.0"
