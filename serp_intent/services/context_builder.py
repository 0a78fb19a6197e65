from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from serp_intent.services.logger import logger
from serp_intent.services.prompt_store import render_prompt
from serp_intent.tools.serper_search import SearchResult

MAX_CONTEXT_RESULTS = 8
MAX_EXCERPT_CHARS = 2000
REFERENCE_SEPARATOR = "\n\n====================\n\n"

Extractor = Callable[[str], Awaitable[str | None]]


@dataclass(frozen=True, slots=True)
class EnrichedResult:
    title: str
    link: str
    snippet: str
    content: str


async def enrich_result(result: SearchResult, extract: Extractor) -> EnrichedResult:
    page = await extract(result.link)
    return EnrichedResult(
        title=result.title,
        link=result.link,
        snippet=result.snippet,
        content=page or result.snippet,
    )


async def enrich_results(
    results: list[SearchResult],
    extract: Extractor,
    *,
    max_results: int = MAX_CONTEXT_RESULTS,
) -> list[EnrichedResult]:
    """Extract page content for the top results concurrently.

    Every task runs to completion. A task that raises is dropped; an
    extraction that simply returns nothing falls back to the snippet.
    Output keeps the input rank order.
    """
    top_results = results[:max_results]
    outcomes = await asyncio.gather(
        *(enrich_result(result, extract) for result in top_results),
        return_exceptions=True,
    )

    enriched: list[EnrichedResult] = []
    for result, outcome in zip(top_results, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning(f"Dropping {result.link} from context: {outcome!r}")
            continue
        enriched.append(outcome)
    return enriched


def render_reference(
    index: int,
    result: EnrichedResult,
    *,
    max_excerpt_chars: int = MAX_EXCERPT_CHARS,
) -> str:
    return render_prompt(
        "intent.reference",
        index=index,
        title=result.title,
        link=result.link,
        snippet=result.snippet,
        excerpt=result.content[:max_excerpt_chars],
    )


def render_references(
    enriched: list[EnrichedResult],
    *,
    max_excerpt_chars: int = MAX_EXCERPT_CHARS,
) -> str | None:
    """Number the results from 1 and join them; ``None`` when empty."""
    if not enriched:
        return None
    blocks = [
        render_reference(index, result, max_excerpt_chars=max_excerpt_chars)
        for index, result in enumerate(enriched, start=1)
    ]
    return REFERENCE_SEPARATOR.join(blocks)


def build_search_context(references: str | None) -> str:
    if not references:
        return render_prompt("intent.no_context")
    return render_prompt("intent.context_header", references=references)
