"""
Pydantic schemas for appointment creation, updates and responses
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Literal, Optional
from datetime import date as date_type, datetime
from uuid import UUID

from appointly.models.enums import AppointmentStatus


# ============================================================================
# Request Schemas (for incoming data)
# ============================================================================

class CustomerData(BaseModel):
    """Inline customer details, deduplicated by email then phone"""
    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v is None or v == "":
            return None
        if '@' not in v:
            raise ValueError('Invalid email address')
        return v.strip()


class AppointmentCreate(BaseModel):
    """Manual booking by staff; start_time is the requested (unbuffered) start"""
    service_id: UUID
    employee_id: UUID
    start_time: datetime
    customer_id: Optional[UUID] = None
    customer_data: Optional[CustomerData] = None
    notes: Optional[str] = None
    status: Literal["pending", "confirmed"] = AppointmentStatus.CONFIRMED.value

    @model_validator(mode='after')
    def require_customer(self):
        if self.customer_id is None and self.customer_data is None:
            raise ValueError('Either customer_id or customer_data is required')
        return self


class SimpleBookingCreate(BaseModel):
    """Customer booking with duration and buffers already resolved by the caller"""
    business_id: UUID
    customer_id: UUID
    employee_id: UUID
    service_id: UUID
    date: date_type
    start_time: str = Field(..., pattern=r'^\d{2}:\d{2}$', description="Local HH:MM")
    duration: int = Field(..., gt=0)
    buffer_before: int = Field(0, ge=0)
    buffer_after: int = Field(0, ge=0)
    notes: Optional[str] = None
    status: Literal["pending", "confirmed"] = AppointmentStatus.PENDING.value


class BookingCreate(BaseModel):
    """Customer self-booking from the public booking page"""
    service_id: UUID
    employee_id: Optional[UUID] = None  # None: pick the suggested employee
    start_time: datetime
    customer: CustomerData
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    employee_id: Optional[UUID] = None
    start_time: Optional[datetime] = None  # requested (unbuffered) start
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class CancelRequest(BaseModel):
    reason: Optional[str] = None


# ============================================================================
# Response Schemas (for outgoing data)
# ============================================================================

class AppointmentResponse(BaseModel):
    """start_time/end_time include buffers, as stored"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    business_id: UUID
    employee_id: UUID
    service_id: UUID
    customer_id: UUID
    start_time: datetime
    end_time: datetime
    status: str
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
