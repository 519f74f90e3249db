"""
Settlement calculator and daily record assembly.
"""
from pos_closing.settlement.calculator import (  # noqa: F401
    calculate_daily_settlement,
    calculate_daily_settlement_from_sales,
    calculate_period_business_summary,
    calculate_report_values,
    calculate_safe_box_amount,
    resolve_opening_cash,
)
