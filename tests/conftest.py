from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from serp_intent.config import PipelineConfig
from serp_intent.services.sink import FrameSink


@pytest.fixture
def pipeline_config():
    def factory(**overrides) -> PipelineConfig:
        base = PipelineConfig(
            ai_api_key="ai-key",
            ai_base_url="https://ai.test/v1",
            model="test-model",
            serper_api_key="serper-key",
            jina_api_key="jina-key",
        )
        return replace(base, **overrides)

    return factory


@pytest.fixture
def run_pipeline():
    async def runner(pipeline, keyword):
        sink = FrameSink()
        task = asyncio.create_task(pipeline.run(keyword, sink))
        frames = [frame async for frame in sink.frames()]
        await task
        return frames

    return runner
