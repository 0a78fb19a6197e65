"""Chat-completion request factory for the OpenAI-compatible AI provider."""
from __future__ import annotations

from typing import Any

import httpx

from serp_intent.config import PipelineConfig
from serp_intent.services.prompt_builder import Prompt


def completion_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/chat/completions"


def completion_payload(prompt: Prompt, *, model: str, max_tokens: int) -> dict[str, Any]:
    return {
        "model": model,
        "max_tokens": max_tokens,
        "messages": prompt.to_messages(),
        "stream": True,
    }


def build_completion_request(
    client: httpx.AsyncClient,
    config: PipelineConfig,
    prompt: Prompt,
) -> httpx.Request:
    """Build the streaming completion request.

    The request is built once and may be re-sent by the retry helper, so the
    body is fully materialized here.
    """
    return client.build_request(
        "POST",
        completion_url(config.ai_base_url),
        json=completion_payload(prompt, model=config.model, max_tokens=config.max_tokens),
        headers={
            "Content-Type": "application/json",
            "Authorization": f"Bearer {config.ai_api_key}",
        },
    )
