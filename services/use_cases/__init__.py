"""
Use Cases package for business logic encapsulation.

This package contains use case classes that encapsulate business logic
and orchestrate interactions between repositories and services.
"""

from services.use_cases.appointments import (
    AppointmentSnapshot,
    BookingQuote,
    CancellationResult,
    PrepareBookingUseCase,
    CreateAppointmentUseCase,
    UpdateAppointmentStatusUseCase,
    CancelBarberAppointmentsUseCase,
    RescheduleAppointmentUseCase,
    ChangeAppointmentDurationUseCase,
    UpdateAppointmentNotesUseCase,
    appointment_to_dict,
)
from services.use_cases.barbers import (
    CreateTimeOffUseCase,
    SetWorkingHoursUseCase,
)

__all__ = [
    'AppointmentSnapshot',
    'BookingQuote',
    'CancellationResult',
    'PrepareBookingUseCase',
    'CreateAppointmentUseCase',
    'UpdateAppointmentStatusUseCase',
    'CancelBarberAppointmentsUseCase',
    'RescheduleAppointmentUseCase',
    'ChangeAppointmentDurationUseCase',
    'UpdateAppointmentNotesUseCase',
    'CreateTimeOffUseCase',
    'SetWorkingHoursUseCase',
    'appointment_to_dict',
]
