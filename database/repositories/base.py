"""
Base repository with common CRUD operations.

Provides a generic base class for all repositories to reduce code duplication.
"""
from typing import TypeVar, Generic, Optional, Type
from abc import ABC

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from database.base import Base

# Type variable for model classes
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Abstract base repository with common CRUD operations.

    Provides:
    - get_by_id: Get single entity by ID
    - exists: Check if entity exists by ID

    Usage:
        class BarberRepository(BaseRepository[Barber]):
            model_class = Barber

            async def get_active(self):
                ...
    """

    model_class: Type[ModelType]

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self.session = session

    async def get_by_id(self, entity_id: int) -> Optional[ModelType]:
        """
        Get entity by its primary key ID.

        Args:
            entity_id: Primary key ID

        Returns:
            Entity or None if not found
        """
        result = await self.session.execute(
            select(self.model_class).where(self.model_class.id == entity_id)
        )
        return result.scalar_one_or_none()

    async def exists(self, entity_id: int) -> bool:
        """Check if entity exists by ID."""
        result = await self.session.execute(
            select(func.count(self.model_class.id)).where(
                self.model_class.id == entity_id
            )
        )
        return (result.scalar() or 0) > 0
