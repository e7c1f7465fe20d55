# appointly/models/__init__.py
from .base import Base
from .enums import AppointmentStatus, ExceptionType, ACTIVE_STATUSES
from .business import Business
from .employee import Employee, employee_service_association
from .service import Service
from .customer import Customer
from .appointment import Appointment
from .schedule_exception import ScheduleException

__all__ = [
    "Base",
    "AppointmentStatus",
    "ExceptionType",
    "ACTIVE_STATUSES",
    "Business",
    "Employee",
    "employee_service_association",
    "Service",
    "Customer",
    "Appointment",
    "ScheduleException",
]
