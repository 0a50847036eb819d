"""Helpers for the YYYY-MM month keys used by budget rows."""

import re
from datetime import date, datetime, timezone

MONTH_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"
_MONTH_RE = re.compile(MONTH_PATTERN)


def is_valid_month(value: str | None) -> bool:
    return bool(value) and _MONTH_RE.fullmatch(value) is not None


def month_of(day: date) -> str:
    """Month key (YYYY-MM) for a calendar date."""
    return day.strftime("%Y-%m")


def current_month() -> str:
    return month_of(datetime.now(timezone.utc).date())


def today() -> date:
    """Current UTC calendar date."""
    return datetime.now(timezone.utc).date()


def month_bounds(month: str) -> tuple[date, date]:
    """Return [first day of month, first day of next month)."""
    year, mon = (int(part) for part in month.split("-"))
    start = date(year, mon, 1)
    end = date(year + 1, 1, 1) if mon == 12 else date(year, mon + 1, 1)
    return start, end
