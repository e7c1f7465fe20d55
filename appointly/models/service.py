# appointly/models/service.py
"""
Service Model - bookable service definitions
Each service belongs to one business and defines how long a booking occupies an employee.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, DateTime, Text, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base
from appointly.models.employee import employee_service_association


class Service(Base):
    """
    Stores structured service information (source of truth for price/duration).

    A booking at time T occupies [T - buffer_before, T + duration + buffer_after).
    """
    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Core service details
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)

    # All in minutes
    duration = Column(Integer, nullable=False, default=30)
    buffer_before = Column(Integer, nullable=False, default=0)
    buffer_after = Column(Integer, nullable=False, default=0)

    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    # Relationships
    business = relationship("Business", back_populates="services")
    employees = relationship(
        "Employee",
        secondary=employee_service_association,
        back_populates="services"
    )

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, business_id={self.business_id})>"

    @property
    def total_duration(self) -> int:
        """Minutes a booking of this service blocks, buffers included"""
        return (self.duration or 0) + (self.buffer_before or 0) + (self.buffer_after or 0)

