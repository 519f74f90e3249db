"""
SQLAlchemy model for daily closing reports.
"""
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String

from pos_closing.database import Base


def _money_column(name=None, nullable=False):
    args = (name,) if name else ()
    return Column(
        *args,
        Numeric(12, 2, asdecimal=False),
        nullable=nullable,
        default=None if nullable else 0,
    )


class DailyReportModel(Base):
    """One closing record per calendar date."""
    __tablename__ = "daily_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False, unique=True, index=True)

    # synced from the POS
    net_sale = _money_column()
    cash_total = _money_column()
    card_total = _money_column()
    total_orders = Column(Integer, nullable=False, default=0)

    # entered manually
    expense = _money_column()
    tip = _money_column()
    thousand_qty = Column("1k_qty", Integer, nullable=False, default=0)
    thousand_total = _money_column("1k_total")
    safe_box_label = Column(String(120), nullable=False, default="1K Bill")
    safe_box_amount = _money_column()
    opening_cash = _money_column(nullable=True)  # NULL = not entered yet
    actual_cash_counted = _money_column(nullable=True)

    # derived
    expected_cash = _money_column()
    difference = _money_column()

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # wire name -> attribute name, where they differ
    ATTRIBUTE_NAMES = {"1k_qty": "thousand_qty", "1k_total": "thousand_total"}

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat() if self.date else None,
            "net_sale": self.net_sale,
            "cash_total": self.cash_total,
            "card_total": self.card_total,
            "total_orders": self.total_orders,
            "expense": self.expense,
            "tip": self.tip,
            "1k_qty": self.thousand_qty,
            "1k_total": self.thousand_total,
            "safe_box_label": self.safe_box_label,
            "safe_box_amount": self.safe_box_amount,
            "opening_cash": self.opening_cash,
            "actual_cash_counted": self.actual_cash_counted,
            "expected_cash": self.expected_cash,
            "difference": self.difference,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
