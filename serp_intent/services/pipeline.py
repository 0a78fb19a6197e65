from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx

from serp_intent.config import PipelineConfig
from serp_intent.llm_client import build_completion_request
from serp_intent.services import streaming
from serp_intent.services.context_builder import (
    build_search_context,
    enrich_results,
    render_references,
)
from serp_intent.services.logger import log_event, log_llm_call, log_pipeline_stage, logger
from serp_intent.services.prompt_builder import Prompt, build_prompt
from serp_intent.services.relay import relay_response
from serp_intent.services.sink import FrameSink, StreamClosedError
from serp_intent.tools import jina_reader, serper_search
from serp_intent.tools.http_retry import fetch_with_retry


class UpstreamTimeoutError(RuntimeError):
    """The AI provider did not accept the completion request in time."""


class IntentPipeline:
    """Runs one search-intent analysis and streams it into a frame sink.

    Flow:
      1. Search Serper for the keyword (degrades to no results)
      2. Fan out: read the top results through Jina Reader in parallel
      3. Assemble numbered reference blocks into the search context
      4. Build the intent-analysis prompt
      5. Relay the provider's streaming completion, with keep-alives

    Each stage transition pushes a status frame. The sink is closed exactly
    once, whichever way the run ends.
    """

    def __init__(self, config: PipelineConfig, *, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client

    @asynccontextmanager
    async def _http_client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        timeout = httpx.Timeout(10.0, read=self.config.ai_read_timeout)
        async with httpx.AsyncClient(timeout=timeout) as client:
            yield client

    async def run(self, keyword: str | None, sink: FrameSink) -> None:
        keyword = (keyword or "").strip()
        started = time.monotonic()
        try:
            if not keyword:
                await sink.status(streaming.keyword_missing())
                return

            async with self._http_client() as client:
                search_context = await self.gather_context(keyword, client, sink)
                prompt = build_prompt(
                    keyword,
                    search_context,
                    system_prompt=self.config.system_prompt,
                )
                await self.stream_completion(keyword, prompt, client, sink)
        except StreamClosedError:
            log_event(
                event_type="stream_closed",
                message="Client stream closed before the pipeline finished",
                keyword=keyword[:100],
            )
        except Exception as exc:
            logger.exception(f"Intent pipeline failed for keyword {keyword[:100]!r}")
            await sink.status(streaming.system_error(str(exc) or exc.__class__.__name__))
        finally:
            sink.close()
            log_event(
                event_type="pipeline_finished",
                message="Intent pipeline finished",
                keyword=keyword[:100],
                runtime_ms=int((time.monotonic() - started) * 1000),
            )

    async def gather_context(
        self,
        keyword: str,
        client: httpx.AsyncClient,
        sink: FrameSink,
    ) -> str:
        """Search, read the top pages and return the prompt's SERP context."""
        config = self.config
        await sink.status(streaming.search_started(keyword))

        results: list[serper_search.SearchResult] | None = None
        if config.serper_api_key:
            results = await serper_search.search(
                keyword,
                config.serper_api_key,
                client=client,
                search_url=config.serper_search_url,
                timeout=config.search_timeout,
            )
            log_pipeline_stage(
                keyword,
                "search",
                "completed" if results else "degraded",
                {"results_count": len(results or [])},
            )
        else:
            await sink.status(streaming.search_unconfigured())
            log_pipeline_stage(keyword, "search", "skipped")

        references: str | None = None
        if results:
            await sink.status(streaming.results_captured(len(results)))

            async def extract(url: str) -> str | None:
                return await jina_reader.extract(
                    url,
                    config.jina_api_key,
                    client=client,
                    base_url=config.jina_reader_base_url,
                    timeout=config.extract_timeout,
                    max_chars=config.max_page_chars,
                )

            enriched = await enrich_results(
                results,
                extract,
                max_results=config.max_context_results,
            )
            log_pipeline_stage(
                keyword,
                "extract",
                "completed" if enriched else "degraded",
                {
                    "requested": min(len(results), config.max_context_results),
                    "kept": len(enriched),
                },
            )
            references = render_references(
                enriched,
                max_excerpt_chars=config.max_excerpt_chars,
            )

        if references:
            await sink.status(streaming.collection_complete())
        else:
            await sink.status(streaming.no_realtime_data())
        return build_search_context(references)

    async def stream_completion(
        self,
        keyword: str,
        prompt: Prompt,
        client: httpx.AsyncClient,
        sink: FrameSink,
    ) -> None:
        config = self.config
        request = build_completion_request(client, config, prompt)
        started = time.monotonic()

        try:
            response = await asyncio.wait_for(
                fetch_with_retry(
                    client,
                    request,
                    max_retries=config.fetch_max_retries,
                    stream=True,
                ),
                timeout=config.ai_connect_timeout,
            )
        except asyncio.TimeoutError as exc:
            log_llm_call(
                model=config.model,
                caller="intent_pipeline",
                duration_ms=int((time.monotonic() - started) * 1000),
                status="error",
                error="timeout",
            )
            raise UpstreamTimeoutError(
                f"AI provider did not respond within {config.ai_connect_timeout:g}s"
            ) from exc

        duration_ms = int((time.monotonic() - started) * 1000)
        if not response.is_success:
            try:
                await response.aread()
                body = response.text
            finally:
                await response.aclose()
            log_llm_call(
                model=config.model,
                caller="intent_pipeline",
                duration_ms=duration_ms,
                status="error",
                status_code=response.status_code,
                error=body[:500],
            )
            await sink.status(streaming.ai_error(response.status_code, body))
            return

        log_llm_call(
            model=config.model,
            caller="intent_pipeline",
            duration_ms=duration_ms,
            status_code=response.status_code,
        )
        relayed = await relay_response(
            response,
            sink,
            keep_alive_seconds=config.keep_alive_interval,
        )
        log_pipeline_stage(keyword, "relay", "completed", {"bytes_relayed": relayed})
