from __future__ import annotations

from datetime import date, datetime, timezone as dt_timezone
from typing import Optional, Union

from django.utils import timezone
from django.conf import settings
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DateLike = Union[date, datetime]


def business_localdate() -> date:
    """
    Return today's date in the business timezone.

    - If settings.BUSINESS_TIMEZONE is set (e.g., 'Asia/Ho_Chi_Minh'), compute the
      date in that timezone explicitly, independent of the server TZ.
    - Otherwise, fall back to Django's timezone.localdate().
    """
    tz_name = getattr(settings, 'BUSINESS_TIMEZONE', None)
    if tz_name:
        try:
            return timezone.now().astimezone(ZoneInfo(tz_name)).date()
        except ZoneInfoNotFoundError:
            pass
    return timezone.localdate()


def as_utc_date(value: DateLike) -> date:
    """Calendar date of ``value`` in UTC. Naive datetimes are read as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(dt_timezone.utc).date()
    return value


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative when end is earlier)."""
    return (as_utc_date(end) - as_utc_date(start)).days


def month_start(value: date) -> date:
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    """First day of the month ``months`` after the month of ``value``."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def months_in_range(start: date, end: date) -> list[date]:
    """First day of every calendar month touched by [start, end], in order."""
    months = []
    current = month_start(start)
    while current <= end:
        months.append(current)
        current = add_months(current, 1)
    return months


def within(value: Optional[DateLike], start: date, end: date) -> bool:
    if value is None:
        return False
    day = as_utc_date(value)
    return start <= day <= end
