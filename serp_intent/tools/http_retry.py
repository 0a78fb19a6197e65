from __future__ import annotations

import asyncio

import httpx

from serp_intent.services.logger import logger

RETRY_BACKOFF_SECONDS = 1.0


def is_accepted(response: httpx.Response) -> bool:
    """Success, redirect, or a client error other than 429.

    Client errors mean the request itself is wrong, so retrying cannot help.
    """
    status = response.status_code
    if 200 <= status < 400:
        return True
    return 400 <= status < 500 and status != 429


async def fetch_with_retry(
    client: httpx.AsyncClient,
    request: httpx.Request,
    *,
    max_retries: int = 2,
    stream: bool = False,
) -> httpx.Response:
    """Send ``request`` up to ``max_retries + 1`` times with linear backoff.

    5xx, 429 and transport failures are retried after
    ``RETRY_BACKOFF_SECONDS * attempt``. The last response or transport
    error is surfaced unchanged once the budget is spent. Cancellation is
    never intercepted, so an aborted caller stops immediately.
    """
    attempts = max(int(max_retries), 0) + 1

    for attempt in range(1, attempts):
        try:
            response = await client.send(request, stream=stream)
        except httpx.TransportError as exc:
            logger.warning(
                f"Request to {request.url.host} failed on attempt {attempt}/{attempts}: {exc!r}"
            )
        else:
            if is_accepted(response):
                return response
            logger.warning(
                f"Request to {request.url.host} returned {response.status_code} "
                f"on attempt {attempt}/{attempts}"
            )
            await response.aclose()

        await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)

    return await client.send(request, stream=stream)
