# appointly/utils/timezone.py
"""
Boundary conversion between API instants and local business wall-clock.

Everything below the API works on naive local datetimes; working-hours
comparisons must never happen in UTC.
"""
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from appointly.config.settings import get_settings

logger = logging.getLogger(__name__)


def get_zone(tz_name: str | None) -> ZoneInfo:
    name = tz_name or get_settings().DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning(f"Unknown timezone {name!r}, falling back to {get_settings().DEFAULT_TIMEZONE}")
        return ZoneInfo(get_settings().DEFAULT_TIMEZONE)


def to_local(value: datetime, tz_name: str | None) -> datetime:
    """Aware instant -> naive local wall-clock; naive values are already local"""
    if value.tzinfo is None:
        return value
    return value.astimezone(get_zone(tz_name)).replace(tzinfo=None)


def localize(value: datetime, tz_name: str | None) -> datetime:
    """Naive local wall-clock -> aware datetime in the business timezone"""
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=get_zone(tz_name))
