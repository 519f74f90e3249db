"""
Business-date validation and day boundaries.
"""
from __future__ import annotations

import re
from datetime import date as date_type
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pos_closing.errors import ConfigurationError, ValidationError

DEFAULT_TIMEZONE = "Asia/Bangkok"

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_INVALID_DATE = "Invalid date format. Use YYYY-MM-DD."


def parse_business_date(value: str | None, field: str = "date") -> date_type:
    """Strict ``YYYY-MM-DD`` that must also be a real calendar day."""
    if not isinstance(value, str) or not _DATE_PATTERN.match(value):
        raise ValidationError(_INVALID_DATE, field=field)
    try:
        parsed = datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(_INVALID_DATE, field=field) from None
    if parsed.isoformat() != value:
        raise ValidationError(_INVALID_DATE, field=field)
    return parsed


def is_valid_date(value: str | None) -> bool:
    try:
        parse_business_date(value)
    except ValidationError:
        return False
    return True


def get_zone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown business timezone: {name}") from None


def _iso_utc(moment: datetime) -> str:
    return (
        moment.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def resolve_date_bounds(value: str, tz_name: str | None = None) -> tuple[str, str]:
    """Return the UTC ISO instants of local 00:00:00.000 and 23:59:59.999."""
    day = parse_business_date(value)
    zone = get_zone(tz_name)
    start = datetime.combine(day, time(0, 0, 0), tzinfo=zone)
    end = datetime.combine(day, time(23, 59, 59, 999000), tzinfo=zone)
    return _iso_utc(start), _iso_utc(end)


def today_in(tz_name: str | None = None) -> str:
    return datetime.now(get_zone(tz_name)).date().isoformat()
