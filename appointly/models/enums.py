# appointly/models/enums.py
import enum


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle states."""
    PENDING = "pending"        # Customer self-booking awaiting confirmation
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


# Only these statuses occupy an employee's time
ACTIVE_STATUSES = (AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value)


class ExceptionType(str, enum.Enum):
    """Per-employee, per-date schedule exception kinds."""
    UNAVAILABLE = "unavailable"        # Time off, sick day
    MODIFIED_HOURS = "modified_hours"  # Different working hours for the date
    HOLIDAY = "holiday"                # Public/business holiday


BLOCKING_EXCEPTION_TYPES = (ExceptionType.UNAVAILABLE.value, ExceptionType.HOLIDAY.value)
