"""
Data Transfer Objects (DTOs) for data validation.

This package contains Pydantic models for validating input data.
"""

from core.dto.appointments import (
    CreateAppointmentDTO,
    UpdateAppointmentStatusDTO,
    DateRangeDTO,
    CreateTimeOffDTO,
    RescheduleAppointmentDTO,
    ChangeDurationDTO,
    UpdateNotesDTO,
    BarberAppointmentsQueryDTO,
)
from core.dto.schedule import (
    WorkingHoursDTO,
    SlotsQueryDTO,
    AvailabilityQueryDTO,
)
from core.dto.services import ServicePriceDTO

__all__ = [
    'CreateAppointmentDTO',
    'UpdateAppointmentStatusDTO',
    'DateRangeDTO',
    'CreateTimeOffDTO',
    'RescheduleAppointmentDTO',
    'ChangeDurationDTO',
    'UpdateNotesDTO',
    'BarberAppointmentsQueryDTO',
    'WorkingHoursDTO',
    'SlotsQueryDTO',
    'AvailabilityQueryDTO',
    'ServicePriceDTO',
]
