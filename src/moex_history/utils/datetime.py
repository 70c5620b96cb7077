"""Calendar helpers shared across the project."""
from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

FRIDAY = 4


def third_friday(year: int, month: int) -> date:
    """Return the third Friday of the month, which always falls on the 15th-21st."""

    fifteenth = date(year, month, 15)
    return fifteenth + timedelta(days=(FRIDAY - fifteenth.weekday() + 7) % 7)


def first_of_month(year: int, month: int) -> date:
    return date(year, month, 1)


def last_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def parse_iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string (a full ISO timestamp is truncated to its date)."""

    normalized = value.strip()
    try:
        if len(normalized) > 10:
            return datetime.fromisoformat(normalized).date()
        return date.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO8601 date: {value}") from exc
