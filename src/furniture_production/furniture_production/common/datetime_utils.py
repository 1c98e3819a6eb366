from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def covers(day: date, start: Optional[datetime], end: Optional[datetime]) -> bool:
    """True when ``day`` lies in the closed calendar interval [start, end].

    A missing start means the interval never began; a missing end means it is still open.
    """

    if start is None:
        return False
    if day < start.date():
        return False
    return end is None or day <= end.date()


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    if start is None or end is None:
        return None
    return max(int((end - start).total_seconds() // 60), 0)


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")


def quarter_key(day: date) -> str:
    return f"{day.year}-Q{(day.month - 1) // 3 + 1}"
