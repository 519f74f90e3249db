"""
Daily report persistence behind an upsert-by-date interface.
"""
from __future__ import annotations

import abc
import logging
from datetime import date as date_type
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pos_closing.models.daily_report import DailyReportModel
from pos_closing.reconciliation.dates import parse_business_date

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 500


def clamp_limit(limit: Any) -> int:
    try:
        value = int(float(limit))
    except (TypeError, ValueError):
        return DEFAULT_LIST_LIMIT
    if value <= 0:
        return DEFAULT_LIST_LIMIT
    return min(value, MAX_LIST_LIMIT)


class DailyReportRepository(abc.ABC):
    """Storage for ``daily_reports``; rows are plain dicts in wire layout."""

    @abc.abstractmethod
    def get_by_date(self, date: str) -> Optional[dict]:
        ...

    @abc.abstractmethod
    def upsert(self, record: Mapping[str, Any]) -> dict:
        """Insert or update the row keyed by ``record["date"]``; last writer wins."""

    @abc.abstractmethod
    def find_latest_before(self, date: str) -> Optional[dict]:
        """Most recent row strictly before *date*."""

    @abc.abstractmethod
    def list_reports(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: Optional[int] = DEFAULT_LIST_LIMIT,
    ) -> list[dict]:
        """Rows newest first; ``limit=None`` returns the whole range."""

    @abc.abstractmethod
    def last_net_sales(self, days: int = 7) -> list[dict]:
        """``[{date, net_sale}]`` for the latest *days* rows, oldest first."""


class SqlAlchemyDailyReportRepository(DailyReportRepository):
    """ORM implementation; portable across SQLite, MySQL and PostgreSQL."""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, day: date_type) -> Optional[DailyReportModel]:
        return self.db.query(DailyReportModel).filter(DailyReportModel.date == day).first()

    def get_by_date(self, date: str) -> Optional[dict]:
        row = self._row(parse_business_date(date))
        return row.to_dict() if row else None

    @staticmethod
    def _apply(row: DailyReportModel, record: Mapping[str, Any]) -> None:
        for key, value in record.items():
            if key in ("date", "created_at", "updated_at"):
                continue
            attr = DailyReportModel.ATTRIBUTE_NAMES.get(key, key)
            if hasattr(DailyReportModel, attr):
                setattr(row, attr, value)
        row.updated_at = datetime.utcnow()

    def upsert(self, record: Mapping[str, Any]) -> dict:
        day = parse_business_date(record.get("date"))

        row = self._row(day)
        if row is None:
            row = DailyReportModel(date=day)
            self._apply(row, record)
            self.db.add(row)
            try:
                self.db.commit()
            except IntegrityError:
                # inserted concurrently; fall through to update
                self.db.rollback()
                logger.info("Concurrent insert for %s, retrying as update", day)
                row = self._row(day)
                self._apply(row, record)
                self.db.commit()
        else:
            self._apply(row, record)
            self.db.commit()

        self.db.refresh(row)
        logger.info("Upserted daily report %s", day)
        return row.to_dict()

    def find_latest_before(self, date: str) -> Optional[dict]:
        day = parse_business_date(date)
        row = (
            self.db.query(DailyReportModel)
            .filter(DailyReportModel.date < day)
            .order_by(DailyReportModel.date.desc())
            .first()
        )
        return row.to_dict() if row else None

    def list_reports(
        self,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        limit: Optional[int] = DEFAULT_LIST_LIMIT,
    ) -> list[dict]:
        query = self.db.query(DailyReportModel)
        if date_from:
            query = query.filter(DailyReportModel.date >= parse_business_date(date_from, "from"))
        if date_to:
            query = query.filter(DailyReportModel.date <= parse_business_date(date_to, "to"))
        query = query.order_by(DailyReportModel.date.desc())
        if limit is not None:
            query = query.limit(clamp_limit(limit))
        rows = query.all()
        return [r.to_dict() for r in rows]

    def last_net_sales(self, days: int = 7) -> list[dict]:
        rows = (
            self.db.query(DailyReportModel)
            .order_by(DailyReportModel.date.desc())
            .limit(days)
            .all()
        )
        return [{"date": r.date.isoformat(), "net_sale": r.net_sale} for r in reversed(rows)]
