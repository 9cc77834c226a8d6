"""Barber model - represents a studio barber and their schedule."""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, ForeignKey, JSON, SmallInteger, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from database.base import Base, IdType, UTCDateTime

if TYPE_CHECKING:
    from database.models.appointment import Appointment


class Barber(Base):
    """Barber model."""

    __tablename__ = "barbers"

    # Primary key
    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    # Profile
    display_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    languages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    # Relationships
    working_hours: Mapped[list["WorkingHours"]] = relationship(
        "WorkingHours",
        back_populates="barber",
        cascade="all, delete-orphan",
        order_by="WorkingHours.weekday",
    )
    time_offs: Mapped[list["TimeOff"]] = relationship(
        "TimeOff",
        back_populates="barber",
        cascade="all, delete-orphan"
    )
    appointments: Mapped[list["Appointment"]] = relationship(
        "Appointment",
        back_populates="barber",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Barber(id={self.id}, display_name='{self.display_name}', active={self.is_active})>"


class WorkingHours(Base):
    """Opening window of a barber for one weekday (0 = Sunday)."""

    __tablename__ = "barber_working_hours"
    __table_args__ = (
        UniqueConstraint("barber_id", "weekday", name="uq_working_hours_barber_weekday"),
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="ck_working_hours_weekday"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    barber_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("barbers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    weekday: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    # Studio-local wall clock, HH:MM
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)

    barber: Mapped["Barber"] = relationship("Barber", back_populates="working_hours")

    def __repr__(self) -> str:
        return (
            f"<WorkingHours(barber_id={self.barber_id}, weekday={self.weekday}, "
            f"{self.start_time}-{self.end_time})>"
        )


class TimeOff(Base):
    """Period during which a barber accepts no bookings."""

    __tablename__ = "barber_time_off"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    barber_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("barbers.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    start_datetime: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    end_datetime: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    barber: Mapped["Barber"] = relationship("Barber", back_populates="time_offs")

    def __repr__(self) -> str:
        return (
            f"<TimeOff(id={self.id}, barber_id={self.barber_id}, "
            f"start={self.start_datetime}, end={self.end_datetime})>"
        )
