"""Per-barber in-process locks for the booking section."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional


class BarberLockRegistry:
    """
    One ``asyncio.Lock`` per barber, created on first use.

    Serializes booking attempts for the same barber inside this process.
    Different barbers never block each other. Cross-process exclusion is the
    row lock taken inside the transaction.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}

    def get(self, barber_id: int) -> asyncio.Lock:
        lock = self._locks.get(barber_id)
        if lock is None:
            lock = self._locks[barber_id] = asyncio.Lock()
        return lock

    @asynccontextmanager
    async def hold(self, barber_id: int, deadline: Optional[float] = None) -> AsyncIterator[None]:
        """
        Hold the barber's lock for the body of the ``async with``.

        Args:
            barber_id: Barber ID
            deadline: Event loop time after which waiting for the lock
                raises ``TimeoutError``; wait forever when None
        """
        lock = self.get(barber_id)
        async with asyncio.timeout_at(deadline):
            await lock.acquire()
        try:
            yield
        finally:
            lock.release()

    def __len__(self) -> int:
        return len(self._locks)
