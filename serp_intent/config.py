from __future__ import annotations

from dataclasses import dataclass

from pydantic_settings import BaseSettings


class ConfigurationError(RuntimeError):
    """Raised when required operator settings are missing."""


class Settings(BaseSettings):
    # AI provider (required at request time)
    gemini_api_key: str = ""
    gemini_base_url: str = ""
    ai_model_name: str = "gemini-2.0-flash-exp"
    ai_max_tokens: int = 8000
    search_intent_prompt: str = ""  # optional system prompt override

    # Serper
    serper_api_key: str = ""
    serper_search_url: str = "https://google.serper.dev/search"

    # Jina Reader
    jina_api_key: str = ""
    jina_reader_base_url: str = "https://r.jina.ai"

    # Timeouts (seconds)
    search_timeout_seconds: float = 8.0
    extract_timeout_seconds: float = 12.0
    ai_connect_timeout_seconds: float = 120.0
    ai_read_timeout_seconds: float = 300.0
    keep_alive_seconds: float = 15.0

    # Context budgets
    max_context_results: int = 8
    max_page_chars: int = 35000
    max_excerpt_chars: int = 2000
    fetch_max_retries: int = 2

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]


settings = Settings()


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Request-scoped snapshot of the settings one pipeline run needs."""

    ai_api_key: str
    ai_base_url: str
    model: str = "gemini-2.0-flash-exp"
    max_tokens: int = 8000
    system_prompt: str | None = None
    serper_api_key: str | None = None
    serper_search_url: str = "https://google.serper.dev/search"
    jina_api_key: str | None = None
    jina_reader_base_url: str = "https://r.jina.ai"
    search_timeout: float = 8.0
    extract_timeout: float = 12.0
    ai_connect_timeout: float = 120.0
    ai_read_timeout: float = 300.0
    keep_alive_interval: float = 15.0
    max_context_results: int = 8
    max_page_chars: int = 35000
    max_excerpt_chars: int = 2000
    fetch_max_retries: int = 2

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "PipelineConfig":
        source = source or settings
        api_key = source.gemini_api_key.strip()
        base_url = source.gemini_base_url.strip()
        if not api_key or not base_url:
            raise ConfigurationError("Missing AI Config")

        return cls(
            ai_api_key=api_key,
            ai_base_url=base_url.rstrip("/"),
            model=source.ai_model_name.strip() or "gemini-2.0-flash-exp",
            max_tokens=max(int(source.ai_max_tokens), 1),
            system_prompt=source.search_intent_prompt.strip() or None,
            serper_api_key=source.serper_api_key.strip() or None,
            serper_search_url=source.serper_search_url,
            jina_api_key=source.jina_api_key.strip() or None,
            jina_reader_base_url=source.jina_reader_base_url.rstrip("/"),
            search_timeout=float(source.search_timeout_seconds),
            extract_timeout=float(source.extract_timeout_seconds),
            ai_connect_timeout=float(source.ai_connect_timeout_seconds),
            ai_read_timeout=float(source.ai_read_timeout_seconds),
            keep_alive_interval=float(source.keep_alive_seconds),
            max_context_results=max(int(source.max_context_results), 1),
            max_page_chars=max(int(source.max_page_chars), 1),
            max_excerpt_chars=max(int(source.max_excerpt_chars), 1),
            fetch_max_retries=max(int(source.fetch_max_retries), 0),
        )
