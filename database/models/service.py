"""Service model - represents a studio service from the catalog."""
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Integer, Boolean, ForeignKey, Numeric, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from database.base import Base, IdType

if TYPE_CHECKING:
    from database.models.appointment import AppointmentService


class Service(Base):
    """Service model."""

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("base_price >= 0", name="ck_services_price_non_negative"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)

    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False, index=True)

    # Duration and price
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Catalog
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    # Relationships
    translations: Mapped[list["ServiceTranslation"]] = relationship(
        "ServiceTranslation",
        back_populates="service",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    appointment_services: Mapped[list["AppointmentService"]] = relationship(
        "AppointmentService",
        back_populates="service"
    )

    def translation(self, locale: str, fallback: str = "de") -> Optional["ServiceTranslation"]:
        """Translation for locale, falling back to the default locale, then any."""
        by_locale = {t.locale: t for t in self.translations}
        return by_locale.get(locale) or by_locale.get(fallback) or next(iter(self.translations), None)

    def __repr__(self) -> str:
        return (
            f"<Service(id={self.id}, slug='{self.slug}', "
            f"duration={self.duration_minutes}min, price={self.base_price})>"
        )


class ServiceTranslation(Base):
    """Localized name and description of a service."""

    __tablename__ = "service_translations"
    __table_args__ = (
        UniqueConstraint("service_id", "locale", name="uq_service_translations_service_locale"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    service_id: Mapped[int] = mapped_column(
        IdType,
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    locale: Mapped[str] = mapped_column(String(5), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    service: Mapped["Service"] = relationship("Service", back_populates="translations")
