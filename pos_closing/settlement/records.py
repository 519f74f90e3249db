"""
Daily report record assembly.

Merges synced sales totals and manually entered fields into the persisted
``daily_reports`` layout, with derived values from the calculator.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional

from pos_closing.errors import ValidationError
from pos_closing.reconciliation.dates import parse_business_date
from pos_closing.reconciliation.money import round_currency, to_number
from pos_closing.schemas import DailySalesSummary
from pos_closing.settlement.calculator import (
    SAFE_BOX_DENOMINATION,
    calculate_report_values,
    resolve_opening_cash,
)

DEFAULT_SAFE_BOX_LABEL = "1K Bill"

# Wire layout of a daily report, in column order.
REPORT_FIELDS = (
    "date",
    "net_sale",
    "cash_total",
    "card_total",
    "total_orders",
    "expense",
    "tip",
    "1k_qty",
    "1k_total",
    "safe_box_label",
    "safe_box_amount",
    "opening_cash",
    "actual_cash_counted",
    "expected_cash",
    "difference",
    "created_at",
    "updated_at",
)

MANUAL_NON_NEGATIVE = (
    "cash_total",
    "card_total",
    "expense",
    "tip",
    "1k_qty",
    "safe_box_amount",
    "opening_cash",
    "actual_cash_counted",
)


def _blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _optional_money(value: Any) -> Optional[float]:
    return None if _blank(value) else round_currency(to_number(value))


def _label(value: Any, default: str) -> str:
    text = str(value or "").strip()
    return text[:120] if text else default


def _parse_total_orders(value: Any) -> int:
    if _blank(value):
        return 0
    number = to_number(value)
    if isinstance(number, float) and not number.is_integer():
        return 0
    if number < 0:
        raise ValidationError("total_orders cannot be negative", field="total_orders")
    return int(number)


def build_manual_record(
    payload: Mapping[str, Any],
    denomination: int = SAFE_BOX_DENOMINATION,
    default_label: str = DEFAULT_SAFE_BOX_LABEL,
) -> dict[str, Any]:
    """Validate a manual save and return the record to upsert."""
    date = payload.get("date")
    parse_business_date(date)

    for field in MANUAL_NON_NEGATIVE:
        if not _blank(payload.get(field)) and to_number(payload.get(field)) < 0:
            raise ValidationError(f"{field} cannot be negative", field=field)

    if _blank(payload.get("1k_qty")) and not _blank(payload.get("safe_box_amount")):
        amount = round_currency(to_number(payload.get("safe_box_amount")))
        if denomination and amount % denomination:
            raise ValidationError(
                f"safe_box_amount must be a multiple of {denomination}",
                field="safe_box_amount",
            )

    total_orders = _parse_total_orders(payload.get("total_orders"))
    values = calculate_report_values(payload, denomination)

    return {
        "date": date,
        "net_sale": values["net_sale"],
        "cash_total": values["cash_total"],
        "card_total": values["card_total"],
        "total_orders": total_orders,
        "expense": values["expense"],
        "tip": values["tip"],
        "1k_qty": values["1k_qty"],
        "1k_total": values["1k_total"],
        "safe_box_label": _label(payload.get("safe_box_label"), default_label),
        "safe_box_amount": values["safe_box_amount"],
        "opening_cash": _optional_money(payload.get("opening_cash")),
        "actual_cash_counted": _optional_money(payload.get("actual_cash_counted")),
        "expected_cash": values["expected_cash"],
        "difference": values["difference"],
    }


def build_synced_record(
    summary: DailySalesSummary,
    existing: Optional[Mapping[str, Any]] = None,
    prior: Optional[Mapping[str, Any]] = None,
    denomination: int = SAFE_BOX_DENOMINATION,
    default_label: str = DEFAULT_SAFE_BOX_LABEL,
) -> dict[str, Any]:
    """Refresh synced totals on a day's record, keeping manual fields.

    Opening cash is carried forward from *prior* only when the existing
    record has none.
    """
    existing = existing or {}
    opening_cash = existing.get("opening_cash")
    if opening_cash is None:
        opening_cash = resolve_opening_cash(prior)

    values = calculate_report_values(
        {
            "opening_cash": opening_cash,
            "cash_total": summary.cash_total,
            "card_total": summary.card_total,
            "expense": existing.get("expense"),
            "tip": existing.get("tip"),
            "safe_box_amount": existing.get("safe_box_amount"),
            "actual_cash_counted": existing.get("actual_cash_counted"),
        },
        denomination,
    )

    return {
        "date": summary.date,
        "net_sale": values["net_sale"],
        "cash_total": values["cash_total"],
        "card_total": values["card_total"],
        "total_orders": summary.total_orders,
        "expense": values["expense"],
        "tip": values["tip"],
        "1k_qty": values["1k_qty"],
        "1k_total": values["1k_total"],
        "safe_box_label": _label(existing.get("safe_box_label"), default_label),
        "safe_box_amount": values["safe_box_amount"],
        "opening_cash": values["opening_cash"],
        "actual_cash_counted": _optional_money(existing.get("actual_cash_counted")),
        "expected_cash": values["expected_cash"],
        "difference": values["difference"],
    }
