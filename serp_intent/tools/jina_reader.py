from __future__ import annotations

import asyncio

import httpx

from serp_intent.services.logger import logger

JINA_READER_BASE_URL = "https://r.jina.ai"
EXTRACT_TIMEOUT_SECONDS = 12.0
MAX_PAGE_CHARS = 35000
TRUNCATION_MARKER = "\n\n...(truncated)"


def truncate_page(text: str, max_chars: int = MAX_PAGE_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


async def _read(
    client: httpx.AsyncClient,
    url: str,
    api_key: str | None,
    base_url: str,
) -> str | None:
    headers = {"X-Return-Format": "markdown"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    response = await client.get(f"{base_url}/{url}", headers=headers)
    if not response.is_success:
        logger.debug(f"Jina Reader returned {response.status_code} for {url}")
        return None
    return response.text


async def extract(
    url: str | None,
    api_key: str | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    base_url: str = JINA_READER_BASE_URL,
    timeout: float = EXTRACT_TIMEOUT_SECONDS,
    max_chars: int = MAX_PAGE_CHARS,
) -> str | None:
    """Read ``url`` as markdown through Jina Reader.

    API: GET https://r.jina.ai/<url>
    Headers:
        - X-Return-Format: markdown
        - Authorization: Bearer <api_key> (optional)

    Single attempt. Timeouts and HTTP failures yield ``None``.
    """
    if not url:
        return None

    try:
        if client is None:
            async with httpx.AsyncClient() as owned_client:
                text = await asyncio.wait_for(
                    _read(owned_client, url, api_key, base_url), timeout=timeout
                )
        else:
            text = await asyncio.wait_for(
                _read(client, url, api_key, base_url), timeout=timeout
            )
    except asyncio.TimeoutError:
        logger.debug(f"Jina Reader timed out after {timeout}s for {url}")
        return None
    except httpx.HTTPError as exc:
        logger.debug(f"Jina Reader failed for {url}: {exc!r}")
        return None

    if text is None:
        return None
    return truncate_page(text, max_chars)
