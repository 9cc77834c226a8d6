"""
Base use case class with common functionality.
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic

from sqlalchemy.ext.asyncio import AsyncSession


ResultType = TypeVar("ResultType")


class BaseUseCase(ABC, Generic[ResultType]):
    """
    Abstract base class for use cases.

    A use case encapsulates a single business operation against one session.
    The caller owns the transaction: use cases flush but never commit.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize use case with database session.

        Args:
            session: Async SQLAlchemy session for database operations
        """
        self.session = session

    @abstractmethod
    async def execute(self, *args, **kwargs) -> ResultType:
        """Execute the use case."""
        pass
