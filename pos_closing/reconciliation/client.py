"""
Loyverse API client.

An explicitly constructed wrapper around ``httpx.AsyncClient`` so callers
(and tests) decide the base URL, credentials and transport.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from pos_closing.config import Settings
from pos_closing.errors import ConfigurationError, UpstreamPaginationError
from pos_closing.reconciliation.dates import resolve_date_bounds
from pos_closing.reconciliation.fields import first_list, resolve

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.loyverse.com/v1.0"
MAX_PAGES = 100

RECEIPT_PAGE_LISTS = ("receipts", "items", "data")
CURSOR_FIELDS = ("cursor", "next_cursor", "nextCursor")
PAYMENT_TYPE_LISTS = ("payment_types", "items", "data")


class LoyverseClient:
    """Paginated read access to receipts and payment types."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        page_limit: int = 250,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ConfigurationError("LOYVERSE_API_TOKEN is not configured")
        self.page_limit = page_limit
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "LoyverseClient":
        return cls(
            token=settings.LOYVERSE_API_TOKEN,
            base_url=settings.LOYVERSE_API_BASE_URL,
            timeout=settings.LOYVERSE_TIMEOUT,
            page_limit=settings.LOYVERSE_PAGE_LIMIT,
            **kwargs,
        )

    async def __aenter__(self) -> "LoyverseClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> dict[str, Any]:
        response = await self._http.get(path, params=params)
        response.raise_for_status()
        payload = response.json()
        return payload if isinstance(payload, dict) else {}

    # ── payment types ────────────────────────────────────────────────────
    async def fetch_payment_type_map(self) -> dict[str, dict[str, str]]:
        """``{payment_type_id: {"name", "type"}}``; empty when the endpoint fails."""
        try:
            payload = await self._get_json("/payment_types")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Payment type lookup failed, continuing without it: %s", exc)
            return {}

        mapping: dict[str, dict[str, str]] = {}
        for payment_type in first_list(payload, PAYMENT_TYPE_LISTS):
            if not isinstance(payment_type, dict):
                continue
            type_id = resolve(payment_type, ("id", "payment_type_id"))
            if not type_id:
                continue
            mapping[str(type_id)] = {
                "name": str(resolve(payment_type, ("name", "payment_type"), "")),
                "type": str(payment_type.get("type") or ""),
            }
        logger.info("Loaded %d payment types", len(mapping))
        return mapping

    # ── receipts ─────────────────────────────────────────────────────────
    async def fetch_receipts(self, date: str, tz_name: Optional[str] = None) -> list[Any]:
        """All closed receipts created during *date* in the business timezone.

        A missing or repeated cursor ends the stream. Paging past
        ``MAX_PAGES`` raises and discards what was fetched.
        """
        start_iso, end_iso = resolve_date_bounds(date, tz_name)

        receipts: list[Any] = []
        cursor: Optional[str] = None
        pages = 0
        while True:
            params: dict[str, Any] = {
                "created_at_min": start_iso,
                "created_at_max": end_iso,
                "status": "CLOSED",
                "limit": self.page_limit,
            }
            if cursor:
                params["cursor"] = cursor

            payload = await self._get_json("/receipts", params=params)
            receipts.extend(first_list(payload, RECEIPT_PAGE_LISTS))
            pages += 1

            next_cursor = resolve(payload, CURSOR_FIELDS)
            if not next_cursor or next_cursor == cursor:
                break
            if pages >= MAX_PAGES:
                raise UpstreamPaginationError(
                    f"Loyverse pagination limit exceeded ({MAX_PAGES} pages) "
                    f"while fetching receipts for {date}"
                )
            cursor = next_cursor

        logger.info("Fetched %d receipts for %s in %d page(s)", len(receipts), date, pages)
        return receipts
