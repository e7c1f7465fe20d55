# appointly/core/exceptions.py
"""Domain errors raised by the service layer and mapped to HTTP in main.py"""


class BookingError(Exception):
    """Base class for all scheduling/booking errors"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BookingError):
    """Malformed business/employee hours. The resolver treats the day as closed."""
    status_code = 500


class SchedulingConflict(BookingError):
    """Requested slot overlaps an existing appointment at commit time."""
    status_code = 409

    def __init__(self, message: str = "This time is no longer available", conflicting_ids=None):
        super().__init__(message)
        self.conflicting_ids = [str(i) for i in (conflicting_ids or [])]


class NotFoundError(BookingError):
    """Referenced business, service, employee, appointment or exception does not exist."""
    status_code = 404


class ExceptionConflict(BookingError):
    """A schedule exception already exists for the (employee, date) pair."""
    status_code = 409


class ValidationError(BookingError):
    """Request is well-formed but not allowed in the current state."""
    status_code = 400
