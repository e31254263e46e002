"""
Process-wide cache of the last successfully captured screenshot.

Lifecycle: empty at process start, overwritten after every successful
screenshot, never evicted. Used by the /image/last debug endpoint.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class AsyncRWLock:
    """Many concurrent readers or one exclusive writer.

    Waiting writers block new readers, so a steady stream of /image/last
    requests cannot starve a screenshot update.
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer_active and self._writers_waiting == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            # State is released before the first await, cancellation can't leak it
            self._readers -= 1
            if self._readers == 0:
                await asyncio.shield(self._notify())

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer_active and self._readers == 0
                )
            except BaseException:
                # Cancelled while queued: let blocked readers re-check
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writer_active = True
        try:
            yield
        finally:
            self._writer_active = False
            await asyncio.shield(self._notify())

    async def _notify(self) -> None:
        async with self._cond:
            self._cond.notify_all()


class LastImageCache:
    def __init__(self) -> None:
        self._lock = AsyncRWLock()
        self._image: Optional[bytes] = None

    async def put(self, image: bytes) -> None:
        # bytes() copies bytearray/memoryview input so callers can't mutate it later
        snapshot = bytes(image)
        async with self._lock.write():
            self._image = snapshot
        logger.debug(f"Cached last screenshot ({len(snapshot)} bytes)")

    async def get(self) -> Optional[bytes]:
        async with self._lock.read():
            return self._image

    async def clear(self) -> None:
        async with self._lock.write():
            self._image = None
