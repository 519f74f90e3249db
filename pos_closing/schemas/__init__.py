"""
Pydantic models shared by the engine, the calculator and the API.
"""
from pos_closing.schemas.report import (  # noqa: F401
    DailySettlement,
    PeriodBusinessSummary,
    ReportUpsertRequest,
)
from pos_closing.schemas.sales import (  # noqa: F401
    DailySalesSummary,
    DiscountEntry,
    PaymentEntry,
)
