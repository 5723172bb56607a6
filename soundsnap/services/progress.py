import asyncio
import logging
from typing import AsyncIterator, List, Optional

logger = logging.getLogger(__name__)

_CLOSED = object()


class ProgressChannel:
    """Unbounded queue of progress strings between a job and whoever renders them.

    ``publish`` never blocks and is safe to pass as a fire-and-forget callback.
    Messages published after ``close`` are dropped.
    """

    def __init__(self):
        self._queue: "asyncio.Queue[object]" = asyncio.Queue()
        self._closed = False
        self.latest: Optional[str] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, message: str) -> None:
        if self._closed:
            logger.debug("Dropping progress message after close: %s", message)
            return
        self.latest = message
        self._queue.put_nowait(message)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item

    async def drain(self) -> List[str]:
        return [message async for message in self]


async def log_progress(channel: ProgressChannel, label: str) -> None:
    async for message in channel:
        logger.info("Progress [%s]: %s", label, message)
