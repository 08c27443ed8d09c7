"""
Date helpers shared by the schedule generator and the aggregator.

All timestamps handled by the service are timezone-aware UTC datetimes.
"""

import calendar
from datetime import date, datetime, time, timezone
from typing import Union

DateLike = Union[datetime, date, str]

# Monday first, as returned by date.weekday()
WEEKDAY_LABELS = ["Lun", "Mar", "Mie", "Jue", "Vie", "Sab", "Dom"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: DateLike) -> datetime:
    """
    Normalise a timestamp to an aware UTC datetime.

    Plain dates become midnight UTC, naive datetimes are taken to be UTC and
    ISO strings (including a trailing ``Z``) are parsed first.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    raise TypeError(f"Unsupported date value: {value!r}")


def add_months(start: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of the target month"""
    month = start.month - 1 + months
    year = start.year + month // 12
    month = month % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def iso_day(value: Union[datetime, date]) -> str:
    """Calendar day prefix of an ISO-8601 timestamp (YYYY-MM-DD)"""
    return value.isoformat()[:10]


def weekday_label(day: date) -> str:
    return WEEKDAY_LABELS[day.weekday()]
