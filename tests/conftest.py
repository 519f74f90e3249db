"""
Shared pytest fixtures — in-memory SQLite, FastAPI TestClient, fake Loyverse API.
"""
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pos_closing.database import Base, build_engine, get_db
from pos_closing.main import app
from pos_closing.models import DailyReportModel  # noqa: F401  (register model)
from pos_closing.reconciliation.client import LoyverseClient
from pos_closing.repository import SqlAlchemyDailyReportRepository
from pos_closing.routers.reports import get_loyverse_client

# StaticPool ensures all connections share the same in-memory database
_ENGINE = build_engine("sqlite:///:memory:", poolclass=StaticPool)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)

BASE_URL = "https://loyverse.test/v1.0"

PAYMENT_TYPES = [
    {"id": "pt-cash", "name": "Cash", "type": "CASH"},
    {"id": "pt-card", "name": "Visa", "type": "NONINTEGRATEDCARD"},
    {"id": "pt-points", "name": "Loyalty Points", "type": "OTHER"},
]


class FakeLoyverse:
    """``httpx.MockTransport`` handler serving canned receipt pages."""

    def __init__(self, pages=None, payment_types=None, payment_types_status=200):
        self.pages = pages if pages is not None else [{"receipts": []}]
        self.payment_types = PAYMENT_TYPES if payment_types is None else payment_types
        self.payment_types_status = payment_types_status
        self.receipt_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer test-token"
        if request.url.path.endswith("/payment_types"):
            if self.payment_types_status != 200:
                return httpx.Response(self.payment_types_status, json={"error": "boom"})
            return httpx.Response(200, json={"payment_types": self.payment_types})
        if request.url.path.endswith("/receipts"):
            self.receipt_requests.append(dict(request.url.params))
            index = min(len(self.receipt_requests) - 1, len(self.pages) - 1)
            return httpx.Response(200, json=self.pages[index])
        return httpx.Response(404, json={"error": "not found"})

    def client(self) -> LoyverseClient:
        return LoyverseClient(
            token="test-token",
            base_url=BASE_URL,
            transport=httpx.MockTransport(self),
        )


def cash_receipt(amount, number="1-1001", **extra):
    receipt = {
        "receipt_number": number,
        "status": "CLOSED",
        "total_money": amount,
        "payments": [{"payment_type_id": "pt-cash", "money_amount": amount}],
    }
    receipt.update(extra)
    return receipt


def card_receipt(amount, number="1-1002", **extra):
    receipt = {
        "receipt_number": number,
        "status": "CLOSED",
        "total_money": amount,
        "payments": [{"payment_type_id": "pt-card", "money_amount": amount}],
    }
    receipt.update(extra)
    return receipt


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def repository(db):
    return SqlAlchemyDailyReportRepository(db)


@pytest.fixture()
def fake_loyverse():
    return FakeLoyverse()


@pytest.fixture()
def client(db, fake_loyverse):
    def _override_db():
        try:
            yield db
        finally:
            pass

    async def _override_loyverse():
        loyverse = fake_loyverse.client()
        try:
            yield loyverse
        finally:
            await loyverse.aclose()

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[get_loyverse_client] = _override_loyverse
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
