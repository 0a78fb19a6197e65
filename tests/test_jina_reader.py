from __future__ import annotations

import asyncio

import httpx
import pytest

from serp_intent.tools import jina_reader
from serp_intent.tools.jina_reader import MAX_PAGE_CHARS, TRUNCATION_MARKER


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_extract_requests_markdown_with_bearer_auth():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["format"] = request.headers.get("X-Return-Format")
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, text="# Page\n\nBody text")

    async with _client(handler) as client:
        text = await jina_reader.extract("https://example.com/page", "jina-key", client=client)

    assert text == "# Page\n\nBody text"
    assert seen["url"] == "https://r.jina.ai/https://example.com/page"
    assert seen["format"] == "markdown"
    assert seen["auth"] == "Bearer jina-key"


@pytest.mark.asyncio
async def test_extract_omits_auth_without_key():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, text="content")

    async with _client(handler) as client:
        await jina_reader.extract("https://example.com", client=client)

    assert seen["auth"] is None


@pytest.mark.asyncio
async def test_extract_truncates_long_pages_with_marker():
    page = "a" * (MAX_PAGE_CHARS + 500)

    async with _client(lambda request: httpx.Response(200, text=page)) as client:
        text = await jina_reader.extract("https://example.com/long", client=client)

    assert text == "a" * MAX_PAGE_CHARS + TRUNCATION_MARKER
    assert len(text) == MAX_PAGE_CHARS + len(TRUNCATION_MARKER)


@pytest.mark.asyncio
async def test_extract_keeps_page_at_exact_budget_untouched():
    page = "b" * MAX_PAGE_CHARS

    async with _client(lambda request: httpx.Response(200, text=page)) as client:
        text = await jina_reader.extract("https://example.com/exact", client=client)

    assert text == page


@pytest.mark.asyncio
async def test_extract_returns_none_without_url():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, text="x")

    async with _client(handler) as client:
        assert await jina_reader.extract("", client=client) is None
        assert await jina_reader.extract(None, client=client) is None
    assert calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [403, 422, 451, 500])
async def test_extract_returns_none_on_non_success(status):
    async with _client(lambda request: httpx.Response(status, text="blocked")) as client:
        assert await jina_reader.extract("https://example.com", client=client) is None


@pytest.mark.asyncio
async def test_extract_returns_none_on_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with _client(handler) as client:
        assert await jina_reader.extract("https://example.com", client=client) is None


@pytest.mark.asyncio
async def test_extract_returns_none_past_hard_timeout():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, text="late")

    async with _client(handler) as client:
        assert await jina_reader.extract("https://example.com", client=client, timeout=0.05) is None


def test_truncate_page_respects_custom_budget():
    assert jina_reader.truncate_page("abcdef", 3) == "abc" + TRUNCATION_MARKER
    assert jina_reader.truncate_page("abc", 3) == "abc"
