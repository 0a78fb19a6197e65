from __future__ import annotations

import asyncio
from typing import AsyncIterator

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from serp_intent.config import ConfigurationError, PipelineConfig, settings
from serp_intent.models.schemas import ErrorResponse, IntentRequest
from serp_intent.services import logger as log_service
from serp_intent.services.pipeline import IntentPipeline
from serp_intent.services.sink import FrameSink

router = APIRouter(prefix="/api/intent", tags=["intent"])


async def _stream_frames(pipeline: IntentPipeline, keyword: str | None) -> AsyncIterator[bytes]:
    sink = FrameSink()
    task = asyncio.create_task(pipeline.run(keyword, sink))
    try:
        async for frame in sink.frames():
            yield frame.encode()
        await task
    finally:
        # Client went away or the stream ended: stop producing either way.
        sink.close()
        if not task.done():
            task.cancel()


@router.post("", responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}})
async def analyze_intent(request: IntentRequest):
    """Stream a search-intent analysis report for ``request.keyword``."""
    try:
        config = PipelineConfig.from_settings(settings)
    except ConfigurationError as exc:
        log_service.log_event(
            event_type="config_error",
            message="AI provider settings are missing",
            error=str(exc),
        )
        return JSONResponse({"error": str(exc)}, status_code=500)

    log_service.log_event(
        event_type="intent_started",
        message="Intent analysis started",
        model=config.model,
        keyword=(request.keyword or "")[:100],
    )
    pipeline = IntentPipeline(config)
    return EventSourceResponse(
        _stream_frames(pipeline, request.keyword),
        headers={"Cache-Control": "no-cache"},
        # Keep-alives come from the relay, between whole upstream chunks.
        ping=0,
    )
