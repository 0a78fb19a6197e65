from __future__ import annotations

import asyncio
from typing import AsyncIterator

import httpx

from serp_intent.services import streaming
from serp_intent.services.sink import FrameSink

KEEP_ALIVE_SECONDS = 15.0


async def _next_chunk(chunks: AsyncIterator[bytes]) -> bytes | None:
    try:
        return await chunks.__anext__()
    except StopAsyncIteration:
        return None


async def relay_chunks(
    chunks: AsyncIterator[bytes],
    sink: FrameSink,
    *,
    keep_alive_seconds: float = KEEP_ALIVE_SECONDS,
) -> int:
    """Forward ``chunks`` to ``sink`` as they arrive, returning the byte count.

    Each read is raced against a keep-alive timer. When the timer wins, a
    keep-alive comment is sent and the same pending read is awaited again,
    so stalls never lose or duplicate upstream bytes.
    """
    relayed = 0
    pending: asyncio.Task[bytes | None] | None = None
    try:
        while True:
            if pending is None:
                pending = asyncio.ensure_future(_next_chunk(chunks))

            done, _ = await asyncio.wait({pending}, timeout=keep_alive_seconds)
            if not done:
                await sink.send(streaming.keep_alive())
                continue

            chunk = pending.result()
            pending = None
            if chunk is None:
                return relayed
            if chunk:
                relayed += len(chunk)
                await sink.send(streaming.upstream_chunk(chunk))
    finally:
        if pending is not None and not pending.done():
            pending.cancel()


async def relay_response(
    response: httpx.Response,
    sink: FrameSink,
    *,
    keep_alive_seconds: float = KEEP_ALIVE_SECONDS,
) -> int:
    """Relay a streaming httpx response body, decoded but otherwise untouched."""
    try:
        return await relay_chunks(
            response.aiter_bytes(),
            sink,
            keep_alive_seconds=keep_alive_seconds,
        )
    finally:
        await response.aclose()
