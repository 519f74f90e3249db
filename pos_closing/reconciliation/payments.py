"""
Payment extraction and cash / card classification.
"""
from __future__ import annotations

import logging
from typing import Any

from pos_closing.errors import ParseAnomaly
from pos_closing.reconciliation.fields import collect, first_list, join_text, resolve
from pos_closing.reconciliation.money import normalize_money
from pos_closing.schemas import PaymentEntry

logger = logging.getLogger(__name__)

PAYMENT_LISTS = ("payments", "payment_details", "payment_type_totals")
PAYMENT_TYPE_ID = ("payment_type_id", "paymentTypeId", "type_id")
PAYMENT_LABELS = ("payment_type", "payment_type_name", "name", "type")
PAYMENT_AMOUNTS = (
    "money_amount",
    "amount_money.amount",
    "amount_money",
    "amount",
    "collected_money",
    "total_money",
    "value",
)

RECEIPT_LABELS = ("payment_type", "payment_type_name", "tender_type", "payment_method")
RECEIPT_AMOUNTS = ("total_money", "total", "total_paid_money")

CARD_KEYWORDS = ("CARD", "CREDIT", "DEBIT", "VISA", "MASTER")

PaymentTypeMap = dict[str, dict[str, str]]


def classify_payment_type(label: Any) -> str:
    """Return ``cash``, ``card`` or ``other`` for a free-text payment label."""
    normalized = str(label or "").upper()
    if "CASH" in normalized:
        return "cash"
    if any(keyword in normalized for keyword in CARD_KEYWORDS):
        return "card"
    return "other"


def _payment_entry(
    payment: Any, payment_type_map: PaymentTypeMap, divisor: int
) -> PaymentEntry:
    if not isinstance(payment, dict):
        raise ParseAnomaly(f"payment entry is {type(payment).__name__}, expected object")

    type_id = resolve(payment, PAYMENT_TYPE_ID)
    mapped = payment_type_map.get(str(type_id)) if type_id is not None else None

    labels = collect(payment, PAYMENT_LABELS)
    if mapped:
        labels += [mapped.get("name"), mapped.get("type")]

    return PaymentEntry(
        label=join_text(labels),
        amount=normalize_money(resolve(payment, PAYMENT_AMOUNTS, 0), divisor),
    )


def extract_payment_entries(
    receipt: dict[str, Any],
    payment_type_map: PaymentTypeMap | None = None,
    divisor: int = 1,
) -> list[PaymentEntry]:
    """Yield one entry per tender, or a single entry from receipt totals."""
    payment_type_map = payment_type_map or {}
    payments = first_list(receipt, PAYMENT_LISTS)

    if not payments:
        return [
            PaymentEntry(
                label=join_text(collect(receipt, RECEIPT_LABELS)),
                amount=normalize_money(resolve(receipt, RECEIPT_AMOUNTS, 0), divisor),
            )
        ]

    entries: list[PaymentEntry] = []
    for idx, payment in enumerate(payments):
        try:
            entries.append(_payment_entry(payment, payment_type_map, divisor))
        except ParseAnomaly as exc:
            logger.warning(
                "Receipt %s payment[%d] unparseable, counted as zero: %s",
                receipt.get("receipt_number") or receipt.get("id"),
                idx,
                exc,
            )
            entries.append(PaymentEntry(label="", amount=0.0))
    return entries
