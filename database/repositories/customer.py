"""Customer repository for database operations."""
from typing import Optional

from database.models import Customer
from database.repositories.base import BaseRepository


class CustomerRepository(BaseRepository[Customer]):
    """Repository for Customer model operations."""

    model_class = Customer

    async def create(
        self,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Customer:
        """Create new customer."""
        customer = Customer(
            name=name.strip(),
            email=email.strip().lower() if email else None,
            phone=phone,
        )
        self.session.add(customer)
        await self.session.flush()
        return customer
