from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from serp_intent.services.logger import logger

SERPER_SEARCH_URL = "https://google.serper.dev/search"
SEARCH_TIMEOUT_SECONDS = 8.0
RESULT_COUNT = 10
COUNTRY = "us"
LANGUAGE = "en"


@dataclass(frozen=True, slots=True)
class SearchResult:
    """One organic result, in provider rank order."""
    title: str
    link: str
    snippet: str


def parse_organic(payload: Any) -> list[SearchResult]:
    if not isinstance(payload, dict):
        raise ValueError("Serper response is not a JSON object")
    organic = payload.get("organic") or []
    if not isinstance(organic, list):
        raise ValueError("Serper 'organic' field is not a list")
    return [
        SearchResult(
            title=str(item.get("title", "") or ""),
            link=str(item.get("link", "") or ""),
            snippet=str(item.get("snippet", "") or ""),
        )
        for item in organic
        if isinstance(item, dict)
    ]


async def _post_search(
    client: httpx.AsyncClient,
    keyword: str,
    api_key: str,
    search_url: str,
) -> list[SearchResult] | None:
    response = await client.post(
        search_url,
        json={"q": keyword, "num": RESULT_COUNT, "gl": COUNTRY, "hl": LANGUAGE},
        headers={"X-API-KEY": api_key, "Content-Type": "application/json"},
    )
    if not response.is_success:
        logger.warning(f"Serper search returned {response.status_code}")
        return None
    return parse_organic(response.json())


async def search(
    keyword: str | None,
    api_key: str | None,
    *,
    client: httpx.AsyncClient | None = None,
    search_url: str = SERPER_SEARCH_URL,
    timeout: float = SEARCH_TIMEOUT_SECONDS,
) -> list[SearchResult] | None:
    """Fetch ranked Google (US/English) results for ``keyword``.

    Returns ``None`` when there is nothing to search with, or on any HTTP
    error, timeout or malformed payload. ``None`` means "no real-time data",
    never a fatal error.
    """
    if not keyword or not api_key:
        return None

    try:
        if client is None:
            async with httpx.AsyncClient() as owned_client:
                return await asyncio.wait_for(
                    _post_search(owned_client, keyword, api_key, search_url),
                    timeout=timeout,
                )
        return await asyncio.wait_for(
            _post_search(client, keyword, api_key, search_url),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Serper search timed out after {timeout}s")
        return None
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning(f"Serper search failed: {exc!r}")
        return None
