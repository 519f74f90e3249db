"""
Daily sync job.

Refreshes a day's synced sales totals from Loyverse while keeping the
manually entered fields, and carries opening cash forward from the previous
business day when it has not been entered.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from pos_closing.reconciliation import fetch_sales_summary_by_date
from pos_closing.reconciliation.client import LoyverseClient
from pos_closing.reconciliation.dates import today_in
from pos_closing.repository import DailyReportRepository
from pos_closing.schemas import DailySalesSummary
from pos_closing.settlement.calculator import SAFE_BOX_DENOMINATION
from pos_closing.settlement.records import DEFAULT_SAFE_BOX_LABEL, build_synced_record

logger = logging.getLogger(__name__)


async def run_daily_sync(
    client: LoyverseClient,
    repository: DailyReportRepository,
    *,
    date: Optional[str] = None,
    timezone: Optional[str] = None,
    money_divisor: int = 1,
    denomination: int = SAFE_BOX_DENOMINATION,
    default_label: str = DEFAULT_SAFE_BOX_LABEL,
) -> dict:
    """Sync one business day (today in *timezone* by default) and return the stored row."""
    date = date or today_in(timezone)
    logger.info("Daily sync start — %s", date)

    summary = await fetch_sales_summary_by_date(
        date, client, timezone=timezone, money_divisor=money_divisor
    )
    # the repository is synchronous; keep it off the event loop
    saved = await run_in_threadpool(
        store_synced_summary, repository, summary, denomination, default_label
    )
    logger.info(
        "Daily sync done — %s: net_sale=%.2f difference=%.2f",
        date,
        saved["net_sale"],
        saved["difference"],
    )
    return saved


def store_synced_summary(
    repository: DailyReportRepository,
    summary: DailySalesSummary,
    denomination: int = SAFE_BOX_DENOMINATION,
    default_label: str = DEFAULT_SAFE_BOX_LABEL,
) -> dict:
    """Merge *summary* into the stored row for its date and upsert it."""
    date = summary.date
    existing = repository.get_by_date(date)
    prior = None
    if existing is None or existing.get("opening_cash") is None:
        # read before this run writes anything
        prior = repository.find_latest_before(date)
        logger.info(
            "Carrying opening cash forward from %s", prior["date"] if prior else "nothing"
        )

    record = build_synced_record(summary, existing, prior, denomination, default_label)
    return repository.upsert(record)
