from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from serp_intent.tools import serper_search
from serp_intent.tools.serper_search import SearchResult


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


ORGANIC = {
    "organic": [
        {"title": "Best Running Shoes 2026", "link": "https://a.com/shoes", "snippet": "Our picks", "position": 1},
        {"title": "Shoe Guide", "link": "https://b.com/guide", "snippet": "How to choose", "position": 2},
    ]
}


@pytest.mark.asyncio
async def test_search_posts_fixed_locale_and_maps_organic_results():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["api_key"] = request.headers.get("X-API-KEY")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=ORGANIC)

    async with _client(handler) as client:
        results = await serper_search.search("best running shoes", "serper-key", client=client)

    assert seen["method"] == "POST"
    assert seen["url"] == "https://google.serper.dev/search"
    assert seen["api_key"] == "serper-key"
    assert seen["body"] == {"q": "best running shoes", "num": 10, "gl": "us", "hl": "en"}
    assert results == [
        SearchResult(title="Best Running Shoes 2026", link="https://a.com/shoes", snippet="Our picks"),
        SearchResult(title="Shoe Guide", link="https://b.com/guide", snippet="How to choose"),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("keyword, api_key", [("", "key"), ("kw", ""), (None, "key"), ("kw", None)])
async def test_search_returns_none_without_keyword_or_key(keyword, api_key):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, json=ORGANIC)

    async with _client(handler) as client:
        assert await serper_search.search(keyword, api_key, client=client) is None
    assert calls == 0


@pytest.mark.asyncio
async def test_search_returns_empty_list_when_organic_missing():
    async with _client(lambda request: httpx.Response(200, json={"searchParameters": {}})) as client:
        assert await serper_search.search("kw", "key", client=client) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 429, 500])
async def test_search_returns_none_on_non_success(status):
    async with _client(lambda request: httpx.Response(status, text="nope")) as client:
        assert await serper_search.search("kw", "key", client=client) is None


@pytest.mark.asyncio
async def test_search_returns_none_on_unparsable_body():
    async with _client(lambda request: httpx.Response(200, text="<html>not json</html>")) as client:
        assert await serper_search.search("kw", "key", client=client) is None


@pytest.mark.asyncio
async def test_search_returns_none_on_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("dns failure", request=request)

    async with _client(handler) as client:
        assert await serper_search.search("kw", "key", client=client) is None


@pytest.mark.asyncio
async def test_search_is_bounded_by_timeout_and_not_retried():
    calls = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        await asyncio.sleep(1)
        return httpx.Response(200, json=ORGANIC)

    async with _client(handler) as client:
        result = await serper_search.search("kw", "key", client=client, timeout=0.05)

    assert result is None
    assert calls == 1


def test_parse_organic_skips_non_object_entries():
    results = serper_search.parse_organic({"organic": [{"title": "T", "link": "https://x.com"}, "junk"]})

    assert results == [SearchResult(title="T", link="https://x.com", snippet="")]
