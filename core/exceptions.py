"""
Custom application exceptions.

These exceptions represent business logic errors that callers handle
explicitly. ``retryable`` tells the caller whether resubmitting the same
request may succeed (timeouts, storage outages) or whether new input is
required (conflicts, invalid selections).
"""
from typing import Optional, Union


class StudioError(Exception):
    """Base exception for all application errors."""

    message: str = "An error occurred"
    retryable: bool = False

    def __init__(self, message: Optional[str] = None, **kwargs):
        self.message = message or self.message
        self.details = kwargs
        super().__init__(self.message)


# ============== Lookup ==============

class NotFoundError(StudioError):
    """Referenced entity does not exist."""
    message = "Not found"


class AppointmentNotFoundError(NotFoundError):
    """Appointment not found."""
    message = "Appointment not found"

    def __init__(self, appointment_id: Optional[int] = None):
        self.appointment_id = appointment_id
        super().__init__(
            f"Appointment #{appointment_id} not found" if appointment_id else None,
            appointment_id=appointment_id,
        )


class BarberNotFoundError(NotFoundError):
    """Barber not found."""
    message = "Barber not found"

    def __init__(self, barber_id: Optional[int] = None):
        self.barber_id = barber_id
        super().__init__(
            f"Barber #{barber_id} not found" if barber_id else None,
            barber_id=barber_id,
        )


class ServiceNotFoundError(NotFoundError):
    """Service not found."""
    message = "Service not found"

    def __init__(self, service: Union[int, str, None] = None):
        self.service = service
        super().__init__(
            f"Service {service!r} not found" if service else None,
            service=service,
        )


# ============== Booking ==============

class BookingError(StudioError):
    """Base booking error."""
    message = "Booking failed"


class InvalidServiceSelectionError(BookingError):
    """One or more requested services do not exist or are inactive."""
    message = "One or more services are invalid or inactive"

    def __init__(self, service_ids: Optional[list[int]] = None):
        self.service_ids = list(service_ids or [])
        super().__init__(service_ids=self.service_ids)


class SlotConflictError(BookingError):
    """Requested window is no longer free."""
    message = "Time slot is no longer available, please pick another time"

    def __init__(self, barber_id: Optional[int] = None, start_time=None, end_time=None):
        self.barber_id = barber_id
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(barber_id=barber_id)


class OutsideWorkingHoursError(BookingError):
    """Window is not inside the barber's working hours for that day."""
    message = "Time must be within the barber's working hours"

    def __init__(self, barber_id: Optional[int] = None, opens: Optional[str] = None, closes: Optional[str] = None):
        self.barber_id = barber_id
        self.opens = opens
        self.closes = closes
        if opens:
            message = f"Time must be within the barber's working hours ({opens} - {closes})"
        else:
            message = "Barber does not work on that day"
        super().__init__(message, barber_id=barber_id)


class BookingTimeoutError(BookingError):
    """The atomic booking section exceeded its time bound."""
    message = "Booking timed out, please try again"
    retryable = True


# ============== Validation ==============

class ValidationError(StudioError):
    """Data validation error."""
    message = "Validation error"

    def __init__(self, field: str, error: str):
        self.field = field
        self.error = error
        super().__init__(f"Invalid '{field}': {error}", field=field)


class InvalidTimeError(ValidationError):
    """Invalid HH:MM time."""
    def __init__(self, value: str):
        super().__init__("time", f"Invalid format: {value}. Expected HH:MM")


class InvalidRangeError(ValidationError):
    """End of a range is not after its start."""
    def __init__(self, start=None, end=None):
        self.start = start
        self.end = end
        super().__init__("range", "End must be after start")


# ============== Storage ==============

class StorageUnavailableError(StudioError):
    """Persistence layer cannot be reached."""
    message = "Storage is temporarily unavailable"
    retryable = True
