"""Database models package."""
from database.models.barber import Barber, WorkingHours, TimeOff
from database.models.customer import Customer
from database.models.service import Service, ServiceTranslation
from database.models.appointment import Appointment, AppointmentService, AppointmentStatus

__all__ = [
    "Barber",
    "WorkingHours",
    "TimeOff",
    "Customer",
    "Service",
    "ServiceTranslation",
    "Appointment",
    "AppointmentService",
    "AppointmentStatus",
]
