"""
Date helpers: UTC storage and display in the application timezone
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Tuple
from zoneinfo import ZoneInfo

from conference_app.core.config import settings


@lru_cache(maxsize=None)
def app_timezone() -> ZoneInfo:
    return ZoneInfo(settings.APP_TIMEZONE)


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the storage convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_input_datetime(value: datetime) -> datetime:
    """Normalize an input datetime to naive UTC.

    Naive values are wall-clock times in the application timezone.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=app_timezone())
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def to_local(value: datetime) -> datetime:
    """Stored naive UTC -> aware datetime in the application timezone"""
    return value.replace(tzinfo=timezone.utc).astimezone(app_timezone())


def _format_date(value: datetime) -> str:
    return f"{value:%A, %B} {value.day}, {value.year}"


def _format_time(value: datetime) -> str:
    return f"{value.hour % 12 or 12}:{value:%M} {value:%p}"


def format_slot_datetime(
    start_time: datetime,
    end_time: datetime,
    hide_end_time: bool = False,
    hide_time: bool = False,
) -> Tuple[str, str]:
    """Return (date_str, time_str) for a slot; time_str is empty when hidden"""
    start = to_local(start_time)
    end = to_local(end_time)

    date_str = _format_date(start)
    if hide_time:
        return date_str, ""
    if hide_end_time:
        return date_str, _format_time(start)
    return date_str, f"{_format_time(start)} - {_format_time(end)}"

