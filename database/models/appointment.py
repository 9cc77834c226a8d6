"""Appointment model - represents a customer booking with a barber."""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import String, Integer, ForeignKey, Text, Numeric, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from database.base import Base, IdType, UTCDateTime

if TYPE_CHECKING:
    from database.models.barber import Barber
    from database.models.customer import Customer
    from database.models.service import Service


class AppointmentStatus(str, Enum):
    """Appointment status enum."""
    BOOKED = "booked"
    ARRIVED = "arrived"
    MISSED = "missed"
    CANCELED = "canceled"
    COMPLETED = "completed"


class Appointment(Base):
    """Appointment model."""

    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_appointments_end_after_start"),
        Index("ix_appointments_barber_window", "barber_id", "start_time", "end_time"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    # Relationships
    customer_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    barber_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("barbers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Appointment details
    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Status
    status: Mapped[str] = mapped_column(
        String(20),
        default=AppointmentStatus.BOOKED.value,
        nullable=False,
        index=True
    )

    # Snapshot of the line item prices at booking time
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    # Relationships
    barber: Mapped["Barber"] = relationship("Barber", back_populates="appointments")
    customer: Mapped["Customer"] = relationship("Customer", back_populates="appointments")
    services: Mapped[list["AppointmentService"]] = relationship(
        "AppointmentService",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentService.order_index",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Appointment(id={self.id}, barber_id={self.barber_id}, "
            f"customer_id={self.customer_id}, start_time={self.start_time}, status='{self.status}')>"
        )


class AppointmentService(Base):
    """Service line item of an appointment."""

    __tablename__ = "appointment_services"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    appointment_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    service_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("services.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    # Service base price as of booking time
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    price_override: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    appointment: Mapped["Appointment"] = relationship("Appointment", back_populates="services")
    service: Mapped["Service"] = relationship("Service", back_populates="appointment_services")

    @property
    def effective_price(self) -> Decimal:
        return self.price_override if self.price_override is not None else self.base_price

    def __repr__(self) -> str:
        return (
            f"<AppointmentService(appointment_id={self.appointment_id}, "
            f"service_id={self.service_id}, order={self.order_index})>"
        )
