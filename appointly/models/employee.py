# appointly/models/employee.py
from sqlalchemy import Column, String, Boolean, DateTime, JSON, Table, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from appointly.models.base import Base


# Association table for many-to-many Employee <-> Service (who can perform what)
employee_service_association = Table(
    'employee_services',
    Base.metadata,
    Column('employee_id', Uuid, ForeignKey('employees.id', ondelete='CASCADE'), primary_key=True),
    Column('service_id', Uuid, ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
)


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(
        Uuid,
        ForeignKey("businesses.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    email = Column(String, nullable=True)

    # Optional per-employee override of the business hours. When set (even to
    # an empty mapping) business hours are never consulted for this employee.
    working_hours = Column(JSON, nullable=True)

    is_active = Column(Boolean, default=True, index=True)
    can_perform_services = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    business = relationship("Business", back_populates="employees")
    services = relationship(
        "Service",
        secondary=employee_service_association,
        back_populates="employees"
    )

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.name}, business_id={self.business_id})>"
