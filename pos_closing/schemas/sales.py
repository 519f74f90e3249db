"""
Reconciliation engine contracts.

The engine produces and consumes these Pydantic v2 models.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentEntry(BaseModel):
    """One tender on a receipt."""
    label: str = Field("", description="Free-text hint used for classification")
    amount: float = 0.0


class DiscountEntry(BaseModel):
    """One discount applied on a receipt or line item."""
    amount: float = Field(..., ge=0)
    percentage: Optional[float] = Field(None, gt=0, lt=100)


class DailySalesSummary(BaseModel):
    """Normalized sales totals for one business day."""
    model_config = ConfigDict(frozen=True)

    date: str
    cash_total: float = 0.0
    card_total: float = 0.0
    net_sale: float = 0.0
    total_orders: int = 0
    unclassified_amount: float = Field(
        0.0, description="Tenders neither cash nor card; excluded from both totals"
    )
    cash_entries: list[float] = Field(default_factory=list)
    card_entries: list[float] = Field(default_factory=list)
    total_discount: float = 0.0
    discount_entries: list[float] = Field(default_factory=list)
    discount_entry_details: list[DiscountEntry] = Field(default_factory=list)
