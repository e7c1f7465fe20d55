from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from appointly.models.base import Base
from appointly.models.enums import AppointmentStatus
import uuid


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_employee_window", "employee_id", "start_time", "end_time"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(Uuid, ForeignKey("businesses.id"), nullable=False, index=True)
    employee_id = Column(Uuid, ForeignKey("employees.id"), nullable=False)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False)
    customer_id = Column(Uuid, ForeignKey("customers.id"), nullable=False)

    # Local business wall-clock, already buffer-expanded:
    # start_time = requested - buffer_before, end_time = requested + duration + buffer_after
    start_time = Column(DateTime(timezone=False), nullable=False)
    end_time = Column(DateTime(timezone=False), nullable=False)
    notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), nullable=False, default=AppointmentStatus.CONFIRMED.value)  # pending, confirmed, cancelled, completed, no_show

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    employee = relationship("Employee")
    service = relationship("Service")
    customer = relationship("Customer")

    def __repr__(self):
        return f"<Appointment(id={self.id}, employee_id={self.employee_id}, start={self.start_time}, status={self.status})>"
