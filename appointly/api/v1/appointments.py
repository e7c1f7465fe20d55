# ============================================================================
# appointly/api/v1/appointments.py
# Booking and appointment management endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Body, Depends, Path, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
from uuid import UUID

from appointly.config.database import get_db
from appointly.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentUpdate,
    BookingCreate,
    CancelRequest,
)
from appointly.services.appointment.appointment_service import AppointmentService
from appointly.services.business.business_service import BusinessService

router = APIRouter(tags=["appointments"])


def _respond(db: Session, business_id: UUID, appointment) -> AppointmentResponse:
    business = BusinessService.get_business(db, business_id)
    return AppointmentService.serialize(appointment, business.timezone)


@router.post("/appointments", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
        data: AppointmentCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """
    Manual booking by staff.
    Returns 409 when the time overlaps an existing appointment of the employee.
    """
    appointment = await AppointmentService.create(db, business_id, data)
    return _respond(db, business_id, appointment)


@router.post("/bookings", response_model=AppointmentResponse, status_code=201)
async def create_booking(
        data: BookingCreate,
        business_id: UUID = Path(..., description="The business ID"),
        db: Session = Depends(get_db)
):
    """
    Customer self-booking.
    Without employee_id the suggested employee of the chosen slot is used.
    """
    appointment = await AppointmentService.create_booking(db, business_id, data)
    return _respond(db, business_id, appointment)


@router.get("/appointments")
async def list_appointments(
        business_id: UUID = Path(..., description="The business ID"),
        start_date: Optional[date] = Query(None, description="Appointments starting on or after this date"),
        end_date: Optional[date] = Query(None, description="Appointments starting on or before this date"),
        status: Optional[List[str]] = Query(None, description="pending, confirmed, cancelled, completed, no_show"),
        employee_id: Optional[UUID] = Query(None),
        customer_id: Optional[UUID] = Query(None),
        service_id: Optional[UUID] = Query(None),
        skip: int = Query(0, ge=0, description="Number of records to skip"),
        limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
        db: Session = Depends(get_db)
):
    return AppointmentService.list_appointments(
        db=db,
        business_id=business_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        employee_id=employee_id,
        customer_id=customer_id,
        service_id=service_id,
        skip=skip,
        limit=limit
    )


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
        business_id: UUID = Path(..., description="The business ID"),
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    appointment = AppointmentService.get_by_id(db, business_id, appointment_id)
    return _respond(db, business_id, appointment)


@router.patch("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
        data: AppointmentUpdate,
        business_id: UUID = Path(..., description="The business ID"),
        appointment_id: UUID = Path(..., description="The appointment ID"),
        db: Session = Depends(get_db)
):
    """Reschedule, reassign or change status; moves are re-checked for overlaps"""
    appointment = await AppointmentService.update(db, business_id, appointment_id, data)
    return _respond(db, business_id, appointment)


@router.post("/appointments/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
        business_id: UUID = Path(...),
        appointment_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    appointment = await AppointmentService.confirm(db, business_id, appointment_id)
    return _respond(db, business_id, appointment)


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
        business_id: UUID = Path(...),
        appointment_id: UUID = Path(...),
        data: Optional[CancelRequest] = Body(None),
        db: Session = Depends(get_db)
):
    appointment = await AppointmentService.cancel(
        db, business_id, appointment_id, reason=data.reason if data else None
    )
    return _respond(db, business_id, appointment)


@router.post("/appointments/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
        business_id: UUID = Path(...),
        appointment_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    appointment = await AppointmentService.complete(db, business_id, appointment_id)
    return _respond(db, business_id, appointment)


@router.post("/appointments/{appointment_id}/no-show", response_model=AppointmentResponse)
async def mark_no_show(
        business_id: UUID = Path(...),
        appointment_id: UUID = Path(...),
        db: Session = Depends(get_db)
):
    appointment = await AppointmentService.mark_no_show(db, business_id, appointment_id)
    return _respond(db, business_id, appointment)
