# ============================================================================
# appointly/api/v1/availability.py
# Public availability endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from appointly.config.database import get_db
from appointly.config.settings import get_settings
from appointly.schemas.availability import DayAvailabilityResponse, SlotCheckResponse, TimeSlotResponse
from appointly.services.availability.availability_service import AvailabilityService
from appointly.services.business.business_service import BusinessService

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("", response_model=List[TimeSlotResponse])
async def get_availability(
        business_id: UUID = Path(..., description="The business ID"),
        service_id: UUID = Query(..., description="Service to book"),
        day: date = Query(..., alias="date", description="Local business date"),
        employee_id: Optional[UUID] = Query(None, description="Only this employee's slots"),
        display_interval: Optional[int] = Query(None, ge=5, le=240, description="Show a slot every N minutes"),
        db: Session = Depends(get_db)
):
    """
    Bookable start times for a service on a date.
    Each slot lists every eligible employee plus a suggested default employee.
    """
    business = BusinessService.get_business(db, business_id)
    slots = AvailabilityService.get_available_slots(
        db,
        business_id,
        service_id,
        day,
        employee_id=employee_id,
        display_interval_minutes=display_interval or get_settings().DEFAULT_DISPLAY_INTERVAL_MINUTES,
    )
    return [TimeSlotResponse.from_slot(slot, business.timezone) for slot in slots]


@router.get("/dates", response_model=List[DayAvailabilityResponse])
async def get_available_dates(
        business_id: UUID = Path(..., description="The business ID"),
        service_id: UUID = Query(...),
        start_date: date = Query(...),
        end_date: date = Query(...),
        employee_id: Optional[UUID] = Query(None),
        db: Session = Depends(get_db)
):
    """Which dates in the range have at least one free slot"""
    return AvailabilityService.get_available_dates(
        db, business_id, service_id, start_date, end_date, employee_id=employee_id
    )


@router.get("/check", response_model=SlotCheckResponse)
async def check_slot(
        business_id: UUID = Path(..., description="The business ID"),
        employee_id: UUID = Query(...),
        service_id: UUID = Query(...),
        start_time: datetime = Query(..., description="ISO-8601; naive values are business-local"),
        db: Session = Depends(get_db)
):
    return SlotCheckResponse(available=AvailabilityService.is_slot_available(
        db, business_id, employee_id, service_id, start_time
    ))
