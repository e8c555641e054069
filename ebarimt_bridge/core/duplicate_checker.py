# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Duplicate order detection

Decides what to do with an orderId that may already have been submitted.
The lookup itself is done by the persistence layer; nothing is stored here.

A unique (order_id, merchant_tin) index in storage is the real guarantee:
two requests can both pass this check before either is saved.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ebarimt_bridge.core.types import ExistingBill


class BillLookup(Protocol):
    def find_by_order(self, order_id: str, merchant_tin: str) -> ExistingBill | None: ...

    def find_latest_by_order(self, order_id: str) -> ExistingBill | None: ...


class DuplicateAction(Enum):
    PROCEED = "proceed"      # first submission
    REJECT = "reject"        # already submitted, no override
    SUPERSEDE = "supersede"  # override, replaces the earlier receipt
    RESUBMIT = "resubmit"    # override, earlier attempt never got an id


@dataclass(frozen=True)
class DuplicateCheckResult:
    is_duplicate: bool
    existing_bill: ExistingBill | None = None


@dataclass(frozen=True)
class DuplicateDecision:
    action: DuplicateAction
    inactive_id: str | None = None
    message: str | None = None

    @property
    def rejected(self) -> bool:
        return self.action == DuplicateAction.REJECT


def check_order_id_duplicate(
    lookup: BillLookup,
    order_id: str,
    merchant_tin: str | None = None,
) -> DuplicateCheckResult:
    """Look up a previous submission by (orderId, merchantTin), or by
    orderId alone when no TIN is known (most recently updated wins)."""
    if merchant_tin:
        existing = lookup.find_by_order(order_id, merchant_tin)
    else:
        existing = lookup.find_latest_by_order(order_id)

    if existing is None:
        return DuplicateCheckResult(is_duplicate=False)

    return DuplicateCheckResult(is_duplicate=True, existing_bill=existing)


def resolve_duplicate(check: DuplicateCheckResult, force: bool = False) -> DuplicateDecision:
    if not check.is_duplicate or check.existing_bill is None:
        return DuplicateDecision(action=DuplicateAction.PROCEED)

    existing = check.existing_bill

    if not force:
        return DuplicateDecision(
            action=DuplicateAction.REJECT,
            message=(
                f"orderId {existing.order_id} was already submitted"
                + (f" (ebarimtId: {existing.ebarimt_id})" if existing.ebarimt_id else "")
            ),
        )

    if existing.success and existing.ebarimt_id:
        return DuplicateDecision(action=DuplicateAction.SUPERSEDE, inactive_id=existing.ebarimt_id)

    return DuplicateDecision(action=DuplicateAction.RESUBMIT)
