# appointly/services/scheduling/schedule_resolver.py
"""
Working-hours resolution for one employee on one date.

Pure functions only: no database access. Shared by the availability query,
the calendar views and the booking write path so they cannot drift apart.
All times are local business wall-clock; comparisons use integer minutes.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, List, Mapping, Optional

from appointly.core.exceptions import ConfigurationError
from appointly.models.enums import ExceptionType, BLOCKING_EXCEPTION_TYPES

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class WorkingBlock:
    """Half-open interval [start, end) during which an employee can be booked"""
    start: datetime
    end: datetime

    def contains(self, start: datetime, end: datetime) -> bool:
        return self.start <= start and end <= self.end


@dataclass(frozen=True)
class DaySchedule:
    """Normalized opening hours for one weekday, in minutes since midnight"""
    open_minutes: int
    close_minutes: int
    lunch_start: Optional[int] = None
    lunch_end: Optional[int] = None

    @property
    def has_lunch_break(self) -> bool:
        return self.lunch_start is not None and self.lunch_end is not None

    def blocks_on(self, day: date) -> List[WorkingBlock]:
        if self.has_lunch_break:
            return [
                WorkingBlock(at_minutes(day, self.open_minutes), at_minutes(day, self.lunch_start)),
                WorkingBlock(at_minutes(day, self.lunch_end), at_minutes(day, self.close_minutes)),
            ]
        return [WorkingBlock(at_minutes(day, self.open_minutes), at_minutes(day, self.close_minutes))]


def at_minutes(day: date, minutes: int) -> datetime:
    return datetime.combine(day, time.min) + timedelta(minutes=minutes)


def parse_hhmm(value: Any) -> int:
    """Parse "HH:MM", "HH:MM:SS" or a time object into minutes since midnight"""
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    if not isinstance(value, str):
        raise ConfigurationError(f"Invalid time value: {value!r}")

    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ConfigurationError(f"Invalid time format (expected HH:MM): {value!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    # 24:00 is accepted as end of day
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ConfigurationError(f"Time out of range: {value!r}")

    return hours * 60 + minutes


def _first_present(raw: Mapping, *keys):
    for key in keys:
        value = raw.get(key)
        if value:
            return value
    return None


def normalize_day_schedule(raw: Optional[Mapping]) -> Optional[DaySchedule]:
    """
    Normalize one stored day entry into a DaySchedule.

    Business hours are stored as {open, close}, employee overrides as
    {start, end}; both may carry isOpen, hasLunchBreak, lunchStart, lunchEnd.

    Returns None when the day is closed or incomplete. Raises
    ConfigurationError when the stored hours are contradictory.
    """
    if not raw:
        return None

    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"Day schedule must be a mapping, got {type(raw).__name__}")

    if raw.get("isOpen") is False or raw.get("is_closed") is True:
        return None

    open_value = _first_present(raw, "open", "start", "openTime")
    close_value = _first_present(raw, "close", "end", "closeTime")
    if open_value is None or close_value is None:
        return None

    open_minutes = parse_hhmm(open_value)
    close_minutes = parse_hhmm(close_value)
    if open_minutes >= close_minutes:
        raise ConfigurationError(f"Opening time {open_value} is not before closing time {close_value}")

    lunch_start_value = raw.get("lunchStart")
    lunch_end_value = raw.get("lunchEnd")
    wants_lunch = raw.get("hasLunchBreak", bool(lunch_start_value))

    if not (wants_lunch and lunch_start_value and lunch_end_value):
        return DaySchedule(open_minutes, close_minutes)

    lunch_start = parse_hhmm(lunch_start_value)
    lunch_end = parse_hhmm(lunch_end_value)
    if not (open_minutes <= lunch_start < lunch_end <= close_minutes):
        raise ConfigurationError(
            f"Lunch break {lunch_start_value}-{lunch_end_value} is not inside {open_value}-{close_value}"
        )

    return DaySchedule(open_minutes, close_minutes, lunch_start, lunch_end)


def _exception_type(exception) -> Optional[str]:
    value = getattr(exception, "type", None)
    if isinstance(value, ExceptionType):
        return value.value
    return value


def resolve_working_blocks(
        day: date,
        business_hours: Optional[Mapping],
        employee_working_hours: Optional[Mapping],
        exception=None,
) -> List[WorkingBlock]:
    """
    Ordered list of working blocks for an employee on `day`.

    Precedence: schedule exception, then the employee override, then
    business hours (only when the employee has no override at all).
    Malformed hours yield an empty list.
    """
    exception_type = _exception_type(exception) if exception is not None else None

    if exception_type == ExceptionType.MODIFIED_HOURS.value:
        # No lunch split for modified hours
        try:
            start = parse_hhmm(exception.start_time)
            end = parse_hhmm(exception.end_time)
        except ConfigurationError as e:
            logger.warning(f"Ignoring modified_hours exception on {day}: {e.message}")
            return []
        if start >= end:
            logger.warning(f"Ignoring modified_hours exception on {day}: start {exception.start_time} >= end {exception.end_time}")
            return []
        return [WorkingBlock(at_minutes(day, start), at_minutes(day, end))]

    if exception_type in BLOCKING_EXCEPTION_TYPES:
        return []

    weekday = WEEKDAY_NAMES[day.weekday()]

    if employee_working_hours is not None:
        raw = employee_working_hours.get(weekday) if isinstance(employee_working_hours, Mapping) else None
        if raw is None:
            # Override present but this day absent: employee does not work
            return []
    else:
        raw = (business_hours or {}).get(weekday)

    try:
        schedule = normalize_day_schedule(raw)
    except ConfigurationError as e:
        logger.warning(f"Treating {weekday} {day} as closed, bad hours configuration: {e.message}")
        return []

    if schedule is None:
        return []

    return schedule.blocks_on(day)
