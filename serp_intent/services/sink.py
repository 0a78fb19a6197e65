from __future__ import annotations

import asyncio
from typing import AsyncIterator

from serp_intent.models.events import StreamFrame
from serp_intent.services import streaming
from serp_intent.services.logger import logger

_CLOSED = object()


class StreamClosedError(RuntimeError):
    """Raised when a frame is pushed after the stream was closed."""


class FrameSink:
    """Request-scoped channel between the pipeline and the HTTP response.

    The pipeline pushes frames with ``send``; the response drains them with
    ``frames()``. The queue holds at most one frame so a slow client slows
    the producer down instead of growing a buffer.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, frame: StreamFrame) -> None:
        if self._closed:
            raise StreamClosedError("stream already closed")
        await self._queue.put(frame)

    async def status(self, frame: StreamFrame | str) -> None:
        """Push a status frame, dropping it if the stream is gone."""
        if isinstance(frame, str):
            frame = streaming.status(frame)
        try:
            await self.send(frame)
        except StreamClosedError:
            logger.debug("Dropped status frame after stream close")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Consumer drains the pending frame, then sees the closed flag.
            pass

    async def frames(self) -> AsyncIterator[StreamFrame]:
        while True:
            if self._closed and self._queue.empty():
                return
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
