"""
Settlement calculator.

Pure functions deriving a daily report's computed fields, plus the period
and per-transaction aggregators. Every monetary output is rounded half-up to
2 places where it is computed.

Stored report values are parsed tolerantly (blank -> 0). The aggregators
validate strictly: negative or non-numeric input raises ``ValidationError``
naming the offending index.
"""
from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from pos_closing.errors import ValidationError
from pos_closing.reconciliation import fetch_sales_summary_by_date
from pos_closing.reconciliation.client import LoyverseClient
from pos_closing.reconciliation.money import round_currency, to_number
from pos_closing.schemas import DailySettlement, PeriodBusinessSummary

SAFE_BOX_DENOMINATION = 1000


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def calculate_safe_box_amount(quantity: Any, denomination: int = SAFE_BOX_DENOMINATION) -> float:
    """``count × denomination``; the count is floored and clamped at 0."""
    return round_currency(safe_box_count(quantity) * denomination)


def safe_box_count(quantity: Any) -> int:
    return max(0, math.floor(to_number(quantity)))


def calculate_net_sale(cash_total: Any = 0, card_total: Any = 0) -> float:
    return round_currency(to_number(cash_total) + to_number(card_total))


def calculate_expected_cash(opening_cash: Any = 0, net_sale: Any = 0) -> float:
    return round_currency(to_number(opening_cash) + to_number(net_sale))


def calculate_report_values(
    raw: Mapping[str, Any], denomination: int = SAFE_BOX_DENOMINATION
) -> dict[str, Any]:
    """Derive ``net_sale``, ``expected_cash``, ``outflow_total`` and ``difference``.

    * ``net_sale``: the submitted value when present and non-blank, else
      ``cash_total + card_total``.
    * safe box: ``1k_qty × denomination``; without a count, the count is
      taken from the submitted ``safe_box_amount`` in whole notes.
    * ``expected_cash = opening_cash + net_sale``
    * ``outflow_total = safe_box_amount + card_total + expense + actual_cash_counted``
    * ``difference = expected_cash - outflow_total``; positive is a surplus,
      negative a shortage.
    """
    opening_cash = round_currency(to_number(raw.get("opening_cash")))
    cash_total = round_currency(to_number(raw.get("cash_total")))
    card_total = round_currency(to_number(raw.get("card_total")))
    expense = round_currency(to_number(raw.get("expense")))
    tip = round_currency(to_number(raw.get("tip")))
    actual_cash_counted = round_currency(to_number(raw.get("actual_cash_counted")))

    if _is_blank(raw.get("1k_qty")):
        submitted = round_currency(to_number(raw.get("safe_box_amount")))
        # whole notes only; a remainder is dropped
        quantity = max(0, int(submitted // denomination)) if denomination else 0
    else:
        quantity = safe_box_count(raw.get("1k_qty"))
    safe_box_amount = calculate_safe_box_amount(quantity, denomination)

    if _is_blank(raw.get("net_sale")):
        net_sale = calculate_net_sale(cash_total, card_total)
    else:
        net_sale = round_currency(to_number(raw.get("net_sale")))

    expected_cash = calculate_expected_cash(opening_cash, net_sale)
    outflow_total = round_currency(
        safe_box_amount + card_total + expense + actual_cash_counted
    )
    difference = round_currency(expected_cash - outflow_total)

    return {
        "opening_cash": opening_cash,
        "cash_total": cash_total,
        "card_total": card_total,
        "expense": expense,
        "tip": tip,
        "1k_qty": quantity,
        "1k_total": round_currency(quantity * denomination),
        "safe_box_amount": safe_box_amount,
        "actual_cash_counted": actual_cash_counted,
        "net_sale": net_sale,
        "expected_cash": expected_cash,
        "outflow_total": outflow_total,
        "difference": difference,
    }


def resolve_opening_cash(prior: Optional[Mapping[str, Any]]) -> float:
    """Carry the previous business day's ending cash into today's opening cash.

    Prefers the prior day's counted cash, then its expected cash, else 0.
    """
    if not prior:
        return 0.0
    for key in ("actual_cash_counted", "expected_cash"):
        if prior.get(key) is not None:
            return round_currency(to_number(prior.get(key)))
    return 0.0


# ---------------------------------------------------------------------------
# Strict aggregators
# ---------------------------------------------------------------------------

PERIOD_FIELDS = (
    # (output total, camelCase key, snake_case key)
    ("cash_total", "cashSales", "cash_total"),
    ("card_total", "cardSales", "card_total"),
    ("expense_total", "expenses", "expense"),
    ("tips_total", "tips", "tip"),
    ("safe_box_total", "safeBoxAmount", "safe_box_amount"),
)


def _strict_decimal(value: Any, label: str, field: str, index: Optional[int]) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a valid number", field=field, index=index)
    try:
        number = Decimal(str(value).strip())
    except ArithmeticError:
        raise ValidationError(f"{label} must be a valid number", field=field, index=index) from None
    if not number.is_finite():
        raise ValidationError(f"{label} must be a valid number", field=field, index=index)
    if number < 0:
        raise ValidationError(f"{label} must be non-negative", field=field, index=index)
    return number


def calculate_period_business_summary(days: Sequence[Mapping[str, Any]]) -> PeriodBusinessSummary:
    """Sum per-day sales, expenses, tips and safe box over a period.

    Totals are accumulated exactly and rounded once at the end.
    """
    if not isinstance(days, (list, tuple)):
        raise TypeError("days must be a list")

    totals = {name: Decimal(0) for name, _, _ in PERIOD_FIELDS}
    for index, day in enumerate(days):
        if not isinstance(day, Mapping):
            raise ValidationError(f"days[{index}] must be an object", index=index)
        for name, camel, snake in PERIOD_FIELDS:
            raw = day.get(camel) if day.get(camel) is not None else day.get(snake)
            totals[name] += _strict_decimal(raw, f"days[{index}].{camel}", camel, index)

    revenue = totals["cash_total"] + totals["card_total"]
    return PeriodBusinessSummary(
        cash_total=round_currency(totals["cash_total"]),
        card_total=round_currency(totals["card_total"]),
        revenue_total=round_currency(revenue),
        expense_total=round_currency(totals["expense_total"]),
        net_revenue_after_expense=round_currency(revenue - totals["expense_total"]),
        tips_total=round_currency(totals["tips_total"]),
        safe_box_total=round_currency(totals["safe_box_total"]),
    )


def _require_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ValidationError(f"{name} must be a valid number", field=name)
    if not math.isfinite(float(value)):
        raise ValidationError(f"{name} must be a valid number", field=name)
    if value < 0:
        raise ValidationError(f"{name} must be non-negative", field=name)
    return float(value)


def build_settlement_result(
    opening_cash: float, cash_sales: float, card_sales: float, expenses: float
) -> DailySettlement:
    return DailySettlement(
        cash_sales=round_currency(cash_sales),
        card_sales=round_currency(card_sales),
        total_revenue=round_currency(cash_sales + card_sales),
        expected_closing_cash=round_currency(opening_cash + cash_sales - expenses),
    )


def calculate_daily_settlement(
    opening_cash: Any, transactions: Sequence[Mapping[str, Any]], expenses: Any
) -> DailySettlement:
    """Settle a day from individual ``{"type": "cash"|"card", "amount"}`` transactions."""
    opening_cash = _require_number("openingCash", opening_cash)
    expenses = _require_number("expenses", expenses)
    if not isinstance(transactions, (list, tuple)):
        raise TypeError("transactions must be a list")

    cash_sales = card_sales = Decimal(0)
    for index, tx in enumerate(transactions):
        if not isinstance(tx, Mapping):
            raise ValidationError(f"transactions[{index}] must be an object", index=index)
        tx_type = str(tx.get("type") or "").lower()
        if tx_type not in ("cash", "card"):
            raise ValidationError(
                f'transactions[{index}].type must be "cash" or "card"',
                field="type",
                index=index,
            )
        amount = _strict_decimal(
            tx.get("amount"), f"transactions[{index}].amount", "amount", index
        )
        if tx_type == "cash":
            cash_sales += amount
        else:
            card_sales += amount

    return build_settlement_result(
        opening_cash, float(cash_sales), float(card_sales), expenses
    )


async def calculate_daily_settlement_from_sales(
    date: str,
    opening_cash: Any,
    expenses: Any,
    client: LoyverseClient,
    *,
    timezone: Optional[str] = None,
    money_divisor: int = 1,
) -> DailySettlement:
    """Settle a day with cash and card sales taken from the reconciled receipts."""
    opening_cash = _require_number("openingCash", opening_cash)
    expenses = _require_number("expenses", expenses)

    summary = await fetch_sales_summary_by_date(
        date, client, timezone=timezone, money_divisor=money_divisor
    )
    return build_settlement_result(
        opening_cash, summary.cash_total, summary.card_total, expenses
    )
