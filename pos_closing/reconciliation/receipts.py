"""
Receipt status policy.

A receipt counts toward the day's sales only when it is closed and carries
no void or refund marker. Refunded receipts are dropped whole; partial
refunds are not prorated.
"""
from __future__ import annotations

from typing import Any

VOID_STATUSES = {"VOIDED", "VOID", "CANCELLED", "CANCELED", "DELETED"}
COMPLETED_STATUSES = {"", "CLOSED", "COMPLETED", "PAID"}

VOID_TIMESTAMPS = ("voided_at", "cancelled_at", "canceled_at", "deleted_at")
REFUND_FLAGS = ("is_refunded", "refunded", "is_returned")
REFUND_TIMESTAMPS = ("refunded_at", "returned_at")
REFUND_COLLECTIONS = ("refunds", "refund_items", "returns")


def _status(receipt: dict[str, Any]) -> str:
    return str(receipt.get("status") or "").strip().upper()


def is_voided(receipt: dict[str, Any]) -> bool:
    if _status(receipt) in VOID_STATUSES:
        return True
    if any(receipt.get(key) for key in VOID_TIMESTAMPS):
        return True
    return receipt.get("is_voided") is True


def has_refund_data(receipt: dict[str, Any]) -> bool:
    if any(receipt.get(flag) is True for flag in REFUND_FLAGS):
        return True
    if any(receipt.get(key) for key in REFUND_TIMESTAMPS):
        return True
    if str(receipt.get("receipt_type") or "").upper() == "REFUND":
        return True
    return any(
        isinstance(receipt.get(key), list) and len(receipt[key]) > 0
        for key in REFUND_COLLECTIONS
    )


def is_completed(receipt: Any) -> bool:
    """True when *receipt* should be counted in the daily totals."""
    if not isinstance(receipt, dict):
        return False
    if is_voided(receipt) or has_refund_data(receipt):
        return False
    return _status(receipt) in COMPLETED_STATUSES
