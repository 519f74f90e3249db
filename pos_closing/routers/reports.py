"""
Daily closing API endpoints.

GET  /api/loyverse/sync               — reconcile one day from Loyverse (no write)
POST /api/reports/sync                — run the daily sync for one day
GET  /api/reports/last-7/net-sales    — net sale trend, oldest first
GET  /api/reports/summary             — period totals over stored reports
GET  /api/reports                     — list reports, newest first
GET  /api/reports/{date}              — get one report
POST /api/reports                     — manual save
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pos_closing.config import settings
from pos_closing.database import get_db
from pos_closing.jobs.daily_sync import run_daily_sync
from pos_closing.reconciliation import fetch_sales_summary_by_date
from pos_closing.reconciliation.client import LoyverseClient
from pos_closing.reconciliation.dates import parse_business_date
from pos_closing.repository import DEFAULT_LIST_LIMIT, SqlAlchemyDailyReportRepository
from pos_closing.schemas import DailySalesSummary, PeriodBusinessSummary, ReportUpsertRequest
from pos_closing.settlement.calculator import calculate_period_business_summary
from pos_closing.settlement.records import build_manual_record

logger = logging.getLogger(__name__)
router = APIRouter()


async def get_loyverse_client():
    """Loyverse client dependency, closed after the request."""
    client = LoyverseClient.from_settings(settings)
    try:
        yield client
    finally:
        await client.aclose()


def get_repository(db: Session = Depends(get_db)) -> SqlAlchemyDailyReportRepository:
    return SqlAlchemyDailyReportRepository(db)


# ── GET /api/loyverse/sync ───────────────────────────────────────────────
@router.get("/loyverse/sync", response_model=DailySalesSummary)
async def sync_from_loyverse(
    date: Optional[str] = None,
    client: LoyverseClient = Depends(get_loyverse_client),
):
    parse_business_date(date)
    return await fetch_sales_summary_by_date(
        date,
        client,
        timezone=settings.LOYVERSE_TIMEZONE,
        money_divisor=settings.LOYVERSE_MONEY_DIVISOR,
    )


# ── POST /api/reports/sync ───────────────────────────────────────────────
@router.post("/reports/sync")
async def sync_report(
    date: Optional[str] = None,
    client: LoyverseClient = Depends(get_loyverse_client),
    repository: SqlAlchemyDailyReportRepository = Depends(get_repository),
):
    if date is not None:
        parse_business_date(date)
    return await run_daily_sync(
        client,
        repository,
        date=date,
        timezone=settings.LOYVERSE_TIMEZONE,
        money_divisor=settings.LOYVERSE_MONEY_DIVISOR,
        denomination=settings.SAFE_BOX_DENOMINATION,
        default_label=settings.SAFE_BOX_DEFAULT_LABEL,
    )


# ── GET /api/reports/last-7/net-sales ────────────────────────────────────
@router.get("/reports/last-7/net-sales")
def last_7_day_net_sales(
    repository: SqlAlchemyDailyReportRepository = Depends(get_repository),
):
    return repository.last_net_sales(7)


# ── GET /api/reports/summary ─────────────────────────────────────────────
@router.get("/reports/summary", response_model=PeriodBusinessSummary)
def reports_summary(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    repository: SqlAlchemyDailyReportRepository = Depends(get_repository),
):
    rows = repository.list_reports(date_from, date_to, limit=None)
    return calculate_period_business_summary(rows)


# ── GET /api/reports ─────────────────────────────────────────────────────
@router.get("/reports")
def list_reports(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    limit: Optional[str] = Query(None),
    repository: SqlAlchemyDailyReportRepository = Depends(get_repository),
):
    rows = repository.list_reports(date_from, date_to, limit or DEFAULT_LIST_LIMIT)
    logger.info("Found %d reports", len(rows))
    return rows


# ── GET /api/reports/{date} ──────────────────────────────────────────────
@router.get("/reports/{date}")
def get_report(
    date: str,
    repository: SqlAlchemyDailyReportRepository = Depends(get_repository),
):
    row = repository.get_by_date(date)
    if not row:
        raise HTTPException(status_code=404, detail="Report not found for this date")
    return row


# ── POST /api/reports ────────────────────────────────────────────────────
@router.post("/reports", status_code=201)
def upsert_report(
    req: ReportUpsertRequest,
    repository: SqlAlchemyDailyReportRepository = Depends(get_repository),
):
    payload = req.model_dump(by_alias=True, exclude_unset=True)
    record = build_manual_record(
        payload,
        denomination=settings.SAFE_BOX_DENOMINATION,
        default_label=settings.SAFE_BOX_DEFAULT_LABEL,
    )
    logger.info("Manual save for %s", record["date"])
    return repository.upsert(record)
