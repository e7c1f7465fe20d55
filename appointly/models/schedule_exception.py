# ===== appointly/models/schedule_exception.py =====
from sqlalchemy import Column, String, Date, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from appointly.models.base import Base
import uuid


class ScheduleException(Base):
    """Specific date overrides for one employee (time off, holidays, special hours)"""
    __tablename__ = "schedule_exceptions"
    __table_args__ = (
        UniqueConstraint("employee_id", "date", name="uq_schedule_exception_employee_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id = Column(Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)

    date = Column(Date, nullable=False)
    type = Column(String(20), nullable=False)  # unavailable, modified_hours, holiday
    reason = Column(String, nullable=True)  # "Holiday", "Vacation", etc.

    # HH:MM, only for modified_hours
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee")

    def __repr__(self):
        return f"<ScheduleException(employee_id={self.employee_id}, date={self.date}, type={self.type})>"
