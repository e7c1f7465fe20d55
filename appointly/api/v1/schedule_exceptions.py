# ============================================================================
# appointly/api/v1/schedule_exceptions.py
# Time off, holidays and modified hours per employee - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
from uuid import UUID

from appointly.config.database import get_db
from appointly.models.enums import ExceptionType
from appointly.schemas.schedule_exception import (
    MONTH_PATTERN,
    AllEmployeesExceptionCreate,
    BulkExceptionResult,
    ConsolidatedExceptionGroup,
    ScheduleExceptionCreate,
    ScheduleExceptionFilter,
    ScheduleExceptionRangeCreate,
    ScheduleExceptionResponse,
    ScheduleExceptionUpdate,
)
from appointly.services.schedule_exception.schedule_exception_service import ScheduleExceptionService

router = APIRouter(prefix="/schedule-exceptions", tags=["schedule-exceptions"])


def _filters(
        employee_id: Optional[UUID] = Query(None),
        types: Optional[List[ExceptionType]] = Query(None, alias="type"),
        date_from: Optional[date] = Query(None),
        date_to: Optional[date] = Query(None),
        month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM"),
) -> ScheduleExceptionFilter:
    return ScheduleExceptionFilter(
        employee_id=employee_id,
        types=types,
        date_from=date_from,
        date_to=date_to,
        month=month,
    )


@router.post("", response_model=ScheduleExceptionResponse, status_code=201)
async def create_exception(
        data: ScheduleExceptionCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """One exception per employee and date; a second one returns 409"""
    return ScheduleExceptionService.create(db, business_id, data)


@router.post("/range", response_model=List[ScheduleExceptionResponse], status_code=201)
async def create_exception_range(
        data: ScheduleExceptionRangeCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """Unavailable for every date in the range; nothing is created if any date is taken"""
    return ScheduleExceptionService.create_range(db, business_id, data)


@router.post("/all-employees", response_model=BulkExceptionResult, status_code=201)
async def create_exception_for_all(
        data: AllEmployeesExceptionCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """Team-wide closure; employees already having an exception on a date are skipped"""
    return ScheduleExceptionService.create_for_all_employees(db, business_id, data)


@router.get("", response_model=List[ScheduleExceptionResponse])
async def list_exceptions(
        business_id: UUID = Path(..., description="The business ID"),
        filters: ScheduleExceptionFilter = Depends(_filters),
        db: Session = Depends(get_db)
):
    return ScheduleExceptionService.list(db, business_id, filters)


@router.get("/consolidated", response_model=List[ConsolidatedExceptionGroup])
async def list_consolidated(
        business_id: UUID = Path(..., description="The business ID"),
        filters: ScheduleExceptionFilter = Depends(_filters),
        db: Session = Depends(get_db)
):
    """Exceptions grouped by date and reason"""
    return ScheduleExceptionService.get_consolidated(db, business_id, filters)


@router.get("/holidays", response_model=List[ScheduleExceptionResponse])
async def list_holidays(
        business_id: UUID = Path(..., description="The business ID"),
        year: int = Query(..., ge=2000, le=2100),
        db: Session = Depends(get_db)
):
    return ScheduleExceptionService.get_holidays(db, business_id, year)


@router.get("/{exception_id}", response_model=ScheduleExceptionResponse)
async def get_exception(
        business_id: UUID = Path(...),
        exception_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    return ScheduleExceptionService.get_by_id(db, business_id, exception_id)


@router.patch("/{exception_id}", response_model=ScheduleExceptionResponse)
async def update_exception(
        data: ScheduleExceptionUpdate,
        business_id: UUID = Path(...),
        exception_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    return ScheduleExceptionService.update(db, business_id, exception_id, data)


@router.delete("/{exception_id}", status_code=204)
async def delete_exception(
        business_id: UUID = Path(...),
        exception_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    """Past exceptions are kept and return 400"""
    ScheduleExceptionService.delete(db, business_id, exception_id)
