"""날짜/시간 유틸리티 모듈.

Date and time helpers shared by the planner, capacity and session code.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator


def as_utc(value: datetime) -> datetime:
    """UTC aware datetime으로 변환합니다.

    Return the value as a timezone-aware UTC datetime. Some drivers hand
    back naive datetimes for timestamptz columns; those are taken as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iter_days(start: date, end: date) -> Iterator[date]:
    """start부터 end까지 모든 날짜 — Every date from start to end, inclusive."""
    current: date = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_bounds(anchor: date) -> tuple[date, date]:
    """기준일이 속한 달의 첫날과 마지막 날 — First and last day of the anchor's month."""
    first: date = anchor.replace(day=1)
    next_month: date = (first + timedelta(days=32)).replace(day=1)
    return first, next_month - timedelta(days=1)


def week_bounds(anchor: date) -> tuple[date, date]:
    """기준일이 속한 주의 월요일과 일요일 — Monday and Sunday of the anchor's week."""
    monday: date = anchor - timedelta(days=anchor.weekday())
    return monday, monday + timedelta(days=6)
