"""Service repository for database operations."""
from decimal import Decimal
from typing import Optional, List, Iterable

from sqlalchemy import select

from database.models import Service, ServiceTranslation
from database.repositories.base import BaseRepository


class ServiceRepository(BaseRepository[Service]):
    """Repository for Service model operations."""

    model_class = Service

    async def get_active_by_ids(self, service_ids: Iterable[int]) -> List[Service]:
        """Get the active subset of the given service IDs."""
        service_ids = list(service_ids)
        if not service_ids:
            return []

        result = await self.session.execute(
            select(Service).where(
                Service.id.in_(service_ids),
                Service.is_active == True,  # noqa: E712
            )
        )
        return list(result.scalars().all())

    async def get_by_slug(self, slug: str) -> Optional[Service]:
        """Get service by slug."""
        result = await self.session.execute(
            select(Service).where(Service.slug == slug)
        )
        return result.scalar_one_or_none()

    async def get_catalog(self, active_only: bool = True) -> List[Service]:
        """Get services in display order."""
        query = select(Service)

        if active_only:
            query = query.where(Service.is_active == True)  # noqa: E712

        query = query.order_by(Service.display_order, Service.id)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create(
        self,
        slug: str,
        duration_minutes: int,
        base_price: Decimal,
        translations: Optional[dict[str, str]] = None,
        display_order: int = 0,
        is_active: bool = True,
    ) -> Service:
        """Create new service with locale -> name translations."""
        service = Service(
            slug=slug,
            duration_minutes=duration_minutes,
            base_price=Decimal(base_price),
            display_order=display_order,
            is_active=is_active,
            translations=[
                ServiceTranslation(locale=locale, name=name)
                for locale, name in (translations or {}).items()
            ],
        )

        self.session.add(service)
        await self.session.flush()
        return service

    async def set_base_price(self, service_id: int, base_price: Decimal) -> Optional[Service]:
        """Change the catalog price. Existing appointments keep their snapshot."""
        service = await self.get_by_id(service_id)
        if service:
            service.base_price = Decimal(base_price).quantize(Decimal("0.01"))
            await self.session.flush()
        return service

    async def deactivate(self, service_id: int) -> Optional[Service]:
        """Hide service from the catalog and from new bookings."""
        service = await self.get_by_id(service_id)
        if service:
            service.is_active = False
            await self.session.flush()
        return service
