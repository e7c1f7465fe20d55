# appointly/api/v1/calendar.py
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
from uuid import UUID

from appointly.config.database import get_db
from appointly.schemas.availability import EmployeeWorkingBlocksResponse
from appointly.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/working-blocks", response_model=List[EmployeeWorkingBlocksResponse])
async def get_working_blocks(
        business_id: UUID = Path(..., description="The business ID"),
        day: date = Query(..., alias="date", description="First (or only) date"),
        end_date: Optional[date] = Query(None, description="Last date for week views"),
        employee_id: Optional[UUID] = Query(None, description="Single employee; all active when omitted"),
        db: Session = Depends(get_db)
):
    """Resolved working hours (exceptions and lunch breaks applied) for calendar rendering"""
    if employee_id:
        return AvailabilityService.get_working_blocks(db, business_id, employee_id, day, end_date)

    return AvailabilityService.get_team_working_blocks(db, business_id, day, end_date or day)
