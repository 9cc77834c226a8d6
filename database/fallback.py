"""Explicit degrade-to-default policy for read-only storage queries."""
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import InterfaceError, OperationalError

from core.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connection-level failures only
STORAGE_ERRORS = (OperationalError, InterfaceError, OSError, StorageUnavailableError)


async def with_fallback(query: Callable[[], Awaitable[T]], default: T, label: str = "query") -> T:
    """
    Run a read-only query, returning ``default`` if storage is unreachable.

    Only availability reads go through here. Write paths must let
    storage errors propagate.

    Args:
        query: Zero-argument coroutine factory performing the read
        default: Value returned when the store fails
        label: Name used in the warning log

    Returns:
        Query result or ``default``
    """
    try:
        return await query()
    except STORAGE_ERRORS as e:
        logger.warning(f"Storage unavailable for {label}, using fallback: {e}")
        return default
