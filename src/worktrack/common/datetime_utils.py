from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta, timezone

from ..core.exceptions import ValidationError


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def parse_month(value: str) -> tuple[int, int]:
    """Parse YYYY-MM into (year, month)."""
    try:
        parsed = datetime.strptime((value or "").strip(), "%Y-%m")
    except ValueError:
        raise ValidationError(f"Invalid month (expected YYYY-MM): {value!r}")
    return parsed.year, parsed.month


def parse_instant(value: str) -> datetime:
    """Parse an ISO date or datetime string; naive values are taken as UTC."""
    v = (value or "").strip()
    if v.endswith("Z"):
        v = v[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(v))
    except ValueError:
        raise ValidationError(f"Invalid date/time: {value!r}")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Inclusive UTC bounds of a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = datetime.combine(day, time.max, tzinfo=timezone.utc)
    return start, end


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    start, _ = day_bounds(date(year, month, 1))
    _, end = day_bounds(date(year, month, days_in_month(year, month)))
    return start, end


def date_key(instant: datetime) -> str:
    """Calendar day of an instant as a YYYY-MM-DD string (UTC)."""
    return ensure_utc(instant).strftime("%Y-%m-%d")


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds between two instants, never negative."""
    seconds = int((ensure_utc(end) - ensure_utc(start)) // timedelta(seconds=1))
    return max(seconds, 0)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")
