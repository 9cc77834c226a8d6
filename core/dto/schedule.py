"""Schedule and availability query DTOs."""
from datetime import date as date_type
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WorkingHoursDTO(BaseModel):
    """DTO for setting a barber's hours on one weekday."""

    weekday: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    start: str = Field(..., description="Opening time, HH:MM")
    end: str = Field(..., description="Closing time, HH:MM")

    @field_validator('start', 'end')
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        """Validate HH:MM and zero-pad it."""
        try:
            hour, minute = map(int, v.strip().split(':'))
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid time format: {v}. Expected HH:MM")
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError(f"Invalid time: {v}")
        return f"{hour:02d}:{minute:02d}"

    @model_validator(mode='after')
    def check_order(self) -> "WorkingHoursDTO":
        if self.start >= self.end:
            raise ValueError("end must be after start")
        return self


class SlotsQueryDTO(BaseModel):
    """Query for slots of one barber or of every barber offering a service."""

    model_config = ConfigDict(populate_by_name=True)

    service_id: Optional[int] = Field(None, alias="serviceId", gt=0)
    barber_id: Optional[int] = Field(None, alias="barberId", gt=0)
    date: date_type
    duration: int = Field(..., gt=0, le=24 * 60, description="Total duration in minutes")
    interval: Optional[int] = Field(None, gt=0, le=24 * 60, description="Grid step in minutes")

    @model_validator(mode='after')
    def check_target(self) -> "SlotsQueryDTO":
        if self.service_id is None and self.barber_id is None:
            raise ValueError("Either barberId or serviceId must be provided")
        return self


class AvailabilityQueryDTO(BaseModel):
    """Query for the month calendar of a service."""

    model_config = ConfigDict(populate_by_name=True)

    service_id: int = Field(..., alias="serviceId", gt=0)
    date: date_type = Field(..., description="Any day of the requested month")
    duration: int = Field(..., gt=0, le=24 * 60)
