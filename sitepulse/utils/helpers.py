"""
Helper utilities
"""
from datetime import date, datetime, timedelta
from typing import Iterator, Optional, Tuple


def utc_today() -> date:
    """Current calendar date in UTC"""
    return datetime.utcnow().date()


def window_bounds(days: int, end: Optional[date] = None) -> Tuple[date, date]:
    """First and last day of the `days` calendar days ending on `end` (inclusive)"""
    end = end or utc_today()
    return end - timedelta(days=days - 1), end


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from start to end, inclusive"""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_iso_date(value) -> date:
    """Parse YYYY-MM-DD (or a longer ISO timestamp) into a date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
