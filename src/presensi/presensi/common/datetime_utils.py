from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional

from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")
    try:
        return datetime.strptime((value or "").strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date (YYYY-MM-DD): {value!r}")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(value)


def parse_clock(value: str) -> time:
    """Parse HH:MM into a time of day."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Invalid time (HH:MM): {value!r}")
    try:
        return datetime.strptime((value or "").strip(), "%H:%M").time()
    except ValueError:
        raise ValidationError(f"Invalid time (HH:MM): {value!r}")


def parse_moment(value: str, *, on_date: Optional[date] = None) -> datetime:
    """Parse an ISO-8601 datetime, or HH:MM combined with ``on_date``."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Invalid datetime: {value!r}")
    v = (value or "").strip()
    if on_date is not None and len(v) <= 5:
        return datetime.combine(on_date, parse_clock(v))
    try:
        parsed = datetime.fromisoformat(v.replace("Z", "+00:00"))
    except ValueError:
        raise ValidationError(f"Invalid datetime: {value!r}")
    # Stored values are naive local time.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def at(day: date, clock: time) -> datetime:
    return datetime.combine(day, clock)


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours rounded to 2 decimals."""
    return round((end - start).total_seconds() / 3600, 2)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day in [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """[first instant of the month, first instant of the next month)."""
    start = datetime(moment.year, moment.month, 1)
    if moment.month == 12:
        return start, datetime(moment.year + 1, 1, 1)
    return start, datetime(moment.year, moment.month + 1, 1)
