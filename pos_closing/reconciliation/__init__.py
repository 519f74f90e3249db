"""
Receipt reconciliation engine.

Orchestrates: fetch payment types → fetch receipts → filter completed →
classify payments → extract discounts → aggregate daily summary.
"""
import logging
from typing import Any, Iterable, Optional

from pos_closing.errors import ParseAnomaly
from pos_closing.reconciliation.client import LoyverseClient
from pos_closing.reconciliation.dates import parse_business_date
from pos_closing.reconciliation.discounts import extract_discount_entries
from pos_closing.reconciliation.money import round_currency
from pos_closing.reconciliation.payments import (
    PaymentTypeMap,
    classify_payment_type,
    extract_payment_entries,
)
from pos_closing.reconciliation.receipts import is_completed
from pos_closing.schemas import DailySalesSummary, DiscountEntry, PaymentEntry

logger = logging.getLogger(__name__)


def _receipt_ref(receipt: Any) -> str:
    if isinstance(receipt, dict):
        return str(receipt.get("receipt_number") or receipt.get("id") or "?")
    return "?"


def _safe_payments(
    receipt: dict, payment_type_map: PaymentTypeMap, divisor: int
) -> list[PaymentEntry]:
    try:
        return extract_payment_entries(receipt, payment_type_map, divisor)
    except (ParseAnomaly, TypeError, ValueError, AttributeError) as exc:
        logger.warning("Receipt %s payments unparseable, counted as zero: %s", _receipt_ref(receipt), exc)
        return []


def _safe_discounts(receipt: dict, divisor: int) -> list[DiscountEntry]:
    try:
        return extract_discount_entries(receipt, divisor)
    except (ParseAnomaly, TypeError, ValueError, AttributeError) as exc:
        logger.warning("Receipt %s discounts unparseable, ignored: %s", _receipt_ref(receipt), exc)
        return []


def summarize_receipts(
    date: str,
    receipts: Iterable[Any],
    payment_type_map: Optional[PaymentTypeMap] = None,
    money_divisor: int = 1,
) -> DailySalesSummary:
    """Aggregate raw vendor receipts into a :class:`DailySalesSummary`.

    Every entry is rounded before it is added and every running total is
    rounded after each addition.
    """
    payment_type_map = payment_type_map or {}
    completed = [r for r in receipts if is_completed(r)]

    cash_total = card_total = unclassified = total_discount = 0.0
    cash_entries: list[float] = []
    card_entries: list[float] = []
    discount_details: list[DiscountEntry] = []

    for receipt in completed:
        for discount in _safe_discounts(receipt, money_divisor):
            total_discount = round_currency(total_discount + discount.amount)
            discount_details.append(discount)

        for payment in _safe_payments(receipt, payment_type_map, money_divisor):
            amount = round_currency(payment.amount)
            category = classify_payment_type(payment.label)
            if category == "cash":
                cash_total = round_currency(cash_total + amount)
                cash_entries.append(amount)
            elif category == "card":
                card_total = round_currency(card_total + amount)
                card_entries.append(amount)
            else:
                unclassified = round_currency(unclassified + amount)

    if unclassified:
        logger.warning(
            "%s: %.2f in payments matched neither cash nor card", date, unclassified
        )

    return DailySalesSummary(
        date=date,
        cash_total=cash_total,
        card_total=card_total,
        net_sale=round_currency(cash_total + card_total),
        total_orders=len(completed),
        unclassified_amount=unclassified,
        cash_entries=cash_entries,
        card_entries=card_entries,
        total_discount=total_discount,
        discount_entries=[d.amount for d in discount_details],
        discount_entry_details=discount_details,
    )


async def fetch_sales_summary_by_date(
    date: str,
    client: LoyverseClient,
    *,
    timezone: Optional[str] = None,
    money_divisor: int = 1,
) -> DailySalesSummary:
    """Fetch one business day's receipts and reconcile them.

    Raises ``ValidationError`` for a bad date, ``UpstreamPaginationError``
    when the feed never ends; nothing is returned partially.
    """
    parse_business_date(date)

    logger.info("Reconciliation start — %s", date)
    payment_type_map = await client.fetch_payment_type_map()
    receipts = await client.fetch_receipts(date, timezone)

    summary = summarize_receipts(date, receipts, payment_type_map, money_divisor)
    logger.info(
        "Reconciled %s: %d orders, cash=%.2f card=%.2f discount=%.2f",
        date,
        summary.total_orders,
        summary.cash_total,
        summary.card_total,
        summary.total_discount,
    )
    return summary
