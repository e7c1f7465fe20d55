"""
Pydantic schemas for per-employee schedule exceptions
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Literal, Optional
from datetime import date as date_type, datetime
from uuid import UUID

from appointly.core.exceptions import ConfigurationError
from appointly.models.enums import ExceptionType
from appointly.services.scheduling.schedule_resolver import parse_hhmm

HHMM_PATTERN = r'^\d{2}:\d{2}$'
MONTH_PATTERN = r'^\d{4}-(0[1-9]|1[0-2])$'


def _check_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        parse_hhmm(value)
    except ConfigurationError as e:
        raise ValueError(e.message)
    return value


class ScheduleExceptionCreate(BaseModel):
    employee_id: UUID
    date: date_type
    type: ExceptionType
    reason: Optional[str] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock_time(cls, v):
        return _check_hhmm(v)

    @model_validator(mode='after')
    def validate_modified_hours(self):
        if self.type == ExceptionType.MODIFIED_HOURS:
            if not self.start_time or not self.end_time:
                raise ValueError('modified_hours requires start_time and end_time')
            if parse_hhmm(self.start_time) >= parse_hhmm(self.end_time):
                raise ValueError('end_time must be after start_time')
        return self


class ScheduleExceptionRangeCreate(BaseModel):
    """Marks an employee unavailable for every date in [date_from, date_to]"""
    employee_id: UUID
    date_from: date_type
    date_to: date_type
    reason: Optional[str] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.date_from > self.date_to:
            raise ValueError('date_to must be on or after date_from')
        return self


class AllEmployeesExceptionCreate(BaseModel):
    """Closure for all (or selected) active employees, e.g. a public holiday"""
    date: date_type
    date_range_end: Optional[date_type] = None
    type: Literal["unavailable", "holiday"] = ExceptionType.HOLIDAY.value
    reason: str = Field(..., min_length=1)
    employee_ids: Optional[List[UUID]] = None

    @model_validator(mode='after')
    def validate_range(self):
        if self.date_range_end and self.date_range_end < self.date:
            raise ValueError('date_range_end must be on or after date')
        return self


class ScheduleExceptionUpdate(BaseModel):
    """Partial update; omitted fields keep their value, date and type cannot be cleared"""
    date: Optional[date_type] = None
    type: Optional[ExceptionType] = None
    reason: Optional[str] = None
    start_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)

    @field_validator('date', 'type')
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f'{info.field_name} cannot be null')
        return v

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_clock_time(cls, v):
        return _check_hhmm(v)


class ScheduleExceptionFilter(BaseModel):
    employee_id: Optional[UUID] = None
    types: Optional[List[ExceptionType]] = None
    date_from: Optional[date_type] = None
    date_to: Optional[date_type] = None
    month: Optional[str] = Field(None, pattern=MONTH_PATTERN, description="YYYY-MM")


class ScheduleExceptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: UUID
    date: date_type
    type: str
    reason: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    created_at: Optional[datetime] = None


class BulkExceptionResult(BaseModel):
    created: int
    skipped: int
    employees: List[str]


class ConsolidatedExceptionGroup(BaseModel):
    """Exceptions sharing a date and reason, e.g. one holiday across the team"""
    date: date_type
    reason: Optional[str] = None
    type: str
    employee_ids: List[UUID] = Field(default_factory=list)
    employee_names: List[str] = Field(default_factory=list)
    exceptions: List[ScheduleExceptionResponse] = Field(default_factory=list)
