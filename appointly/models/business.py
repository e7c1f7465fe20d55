# appointly/models/business.py
"""
Business Model - tenant root for hours, employees, services and appointments
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    url_slug = Column(String(120), nullable=True, unique=True)

    # Weekday name -> {"open": "HH:MM", "close": "HH:MM", "lunchStart"?, "lunchEnd"?}
    # A missing weekday means the business is closed that day.
    business_hours = Column(JSON, default=dict)

    # System configuration
    timezone = Column(String(50), default="Europe/Zurich")
    accept_appointments_automatically = Column(Boolean, default=False)

    employees = relationship("Employee", back_populates="business")
    services = relationship("Service", back_populates="business")

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"
