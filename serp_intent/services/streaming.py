from __future__ import annotations

from serp_intent.models.events import FrameKind, StreamFrame


def status(text: str) -> StreamFrame:
    return StreamFrame(kind=FrameKind.STATUS, text=text)


def upstream_chunk(data: bytes) -> StreamFrame:
    return StreamFrame(kind=FrameKind.UPSTREAM, payload=data)


def keep_alive() -> StreamFrame:
    return StreamFrame(kind=FrameKind.KEEP_ALIVE)


def keyword_missing() -> StreamFrame:
    return status("> ❌ **Error: no keyword provided, analysis cannot start.**\n\n")


def search_started(keyword: str) -> StreamFrame:
    return status(f'> 🔍 **Analyzing Google (US) search results for:** "{keyword}"...\n\n')


def search_unconfigured() -> StreamFrame:
    return status("> ⚠️ **No search API configured, theoretical analysis only...**\n\n")


def results_captured(count: int) -> StreamFrame:
    return status(
        f"> 📖 **Captured the top {count} ranking pages, fetching their content in parallel...**\n\n"
    )


def collection_complete() -> StreamFrame:
    return status(
        "> ✅ **Data collection complete, the AI is building the intent analysis model...**\n\n---\n\n"
    )


def no_realtime_data() -> StreamFrame:
    return status(
        "> ⚠️ **No real-time data retrieved, running a general theoretical analysis...**\n\n---\n\n"
    )


def ai_error(status_code: int, body: str) -> StreamFrame:
    return status(f"\n\n❌ **AI Error**: {status_code}\n{body}")


def system_error(message: str) -> StreamFrame:
    return status(f"\n\n❌ **System Error**: {message}")
