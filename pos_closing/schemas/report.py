"""
Settlement and daily report schemas.
"""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ReportUpsertRequest(BaseModel):
    """Manual save of a daily report. Derived fields are recomputed server-side."""
    model_config = ConfigDict(populate_by_name=True)

    date: str
    net_sale: Optional[Union[float, str]] = None
    cash_total: Optional[float] = None
    card_total: Optional[float] = None
    total_orders: Optional[int] = None
    expense: Optional[float] = None
    tip: Optional[float] = None
    thousand_qty: Optional[float] = Field(None, alias="1k_qty")
    safe_box_label: Optional[str] = None
    safe_box_amount: Optional[float] = None
    opening_cash: Optional[float] = None
    actual_cash_counted: Optional[float] = None


class PeriodBusinessSummary(BaseModel):
    cash_total: float = 0.0
    card_total: float = 0.0
    revenue_total: float = 0.0
    expense_total: float = 0.0
    net_revenue_after_expense: float = 0.0
    tips_total: float = 0.0
    safe_box_total: float = 0.0


class DailySettlement(BaseModel):
    """Result of the per-transaction settlement form."""
    cash_sales: float = 0.0
    card_sales: float = 0.0
    total_revenue: float = 0.0
    expected_closing_cash: float = 0.0
