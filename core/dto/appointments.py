"""Appointment and booking DTOs for data validation."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from database.models import AppointmentStatus


def _require_offset(v: datetime) -> datetime:
    if v.tzinfo is None or v.utcoffset() is None:
        raise ValueError("timestamp must include a UTC offset or 'Z'")
    return v


class CreateAppointmentDTO(BaseModel):
    """DTO for creating a new appointment."""

    model_config = ConfigDict(populate_by_name=True)

    customer_id: int = Field(..., alias="customerId", gt=0, description="Customer ID")
    barber_id: int = Field(..., alias="barberId", gt=0, description="Barber ID")
    start_time: datetime = Field(..., alias="startTime", description="Appointment start (ISO-8601 with offset)")
    service_ids: list[int] = Field(..., alias="serviceIds", description="Selected services, in display order")
    notes: Optional[str] = Field(None, max_length=500, description="Optional notes")

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v: datetime) -> datetime:
        """Ensure start_time carries an explicit offset."""
        return _require_offset(v)


class UpdateAppointmentStatusDTO(BaseModel):
    """DTO for an explicit status transition."""

    status: AppointmentStatus = Field(..., description="New status")

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v):
        """Accept BOOKED as well as booked."""
        return v.lower() if isinstance(v, str) else v


class DateRangeDTO(BaseModel):
    """DTO for a barber date range (cancellation)."""

    start: datetime = Field(..., description="Range start (inclusive)")
    end: datetime = Field(..., description="Range end (inclusive)")

    @field_validator('start', 'end')
    @classmethod
    def validate_offset(cls, v: datetime) -> datetime:
        return _require_offset(v)


class CreateTimeOffDTO(DateRangeDTO):
    """DTO for a barber time-off entry."""

    model_config = ConfigDict(populate_by_name=True)

    reason: Optional[str] = Field(None, max_length=500, description="Optional reason")
    cancel_appointments: bool = Field(
        False,
        alias="cancelAppointments",
        description="Also cancel appointments starting inside the period"
    )


class RescheduleAppointmentDTO(BaseModel):
    """DTO for moving an appointment, optionally to another barber."""

    model_config = ConfigDict(populate_by_name=True)

    start_time: datetime = Field(..., alias="startTime", description="New start (ISO-8601 with offset)")
    end_time: Optional[datetime] = Field(None, alias="endTime", description="New end; keeps the duration if omitted")
    barber_id: Optional[int] = Field(None, alias="barberId", gt=0, description="New barber")

    @field_validator('start_time', 'end_time')
    @classmethod
    def validate_offset(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _require_offset(v) if v is not None else v


class ChangeDurationDTO(BaseModel):
    """DTO for resizing an appointment."""

    model_config = ConfigDict(populate_by_name=True)

    duration_minutes: int = Field(..., alias="durationMinutes", gt=0, le=24 * 60)


class UpdateNotesDTO(BaseModel):
    """DTO for replacing appointment notes."""

    notes: Optional[str] = Field(None, max_length=500)


class BarberAppointmentsQueryDTO(BaseModel):
    """Optional status filter for a barber's appointment list."""

    status: Optional[AppointmentStatus] = None

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, v):
        return v.lower() if isinstance(v, str) else v
