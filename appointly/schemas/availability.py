"""
Pydantic schemas for availability responses
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date as date_type, datetime

from appointly.utils.timezone import localize


class AvailableEmployeeResponse(BaseModel):
    id: str
    name: Optional[str] = None


class TimeSlotResponse(BaseModel):
    """One bookable start time; merged slots list every eligible employee"""
    start_time: datetime
    end_time: datetime
    employee_id: Optional[str] = None
    employee_name: Optional[str] = None
    available: bool = True
    available_employee_count: Optional[int] = None
    available_employees: List[AvailableEmployeeResponse] = Field(default_factory=list)

    @classmethod
    def from_slot(cls, slot, tz_name: str) -> "TimeSlotResponse":
        return cls(
            start_time=localize(slot.start_time, tz_name),
            end_time=localize(slot.end_time, tz_name),
            employee_id=slot.employee_id,
            employee_name=slot.employee_name,
            available=slot.available,
            available_employee_count=slot.available_employee_count,
            available_employees=[
                AvailableEmployeeResponse(id=e.id, name=e.name) for e in slot.available_employees
            ],
        )


class DayAvailabilityResponse(BaseModel):
    date: date_type
    has_availability: bool


class SlotCheckResponse(BaseModel):
    available: bool


class WorkingBlockResponse(BaseModel):
    start: datetime
    end: datetime


class EmployeeWorkingBlocksResponse(BaseModel):
    """Resolved working hours of one employee on one date (calendar views)"""
    employee_id: str
    employee_name: Optional[str] = None
    date: date_type
    blocks: List[WorkingBlockResponse] = Field(default_factory=list)
