"""Database repositories package."""
from database.repositories.barber import BarberRepository
from database.repositories.customer import CustomerRepository
from database.repositories.service import ServiceRepository
from database.repositories.appointment import AppointmentRepository

__all__ = [
    "BarberRepository",
    "CustomerRepository",
    "ServiceRepository",
    "AppointmentRepository",
]
