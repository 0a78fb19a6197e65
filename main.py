"""SERP Intent - search intent analysis

Simple CLI for running an analysis in-process or serving the API.
"""

import argparse
import asyncio
import json
import sys

from serp_intent.config import ConfigurationError, PipelineConfig
from serp_intent.models.events import FrameKind
from serp_intent.services.pipeline import IntentPipeline
from serp_intent.services.sink import FrameSink


class CompletionTextDecoder:
    """Pull ``delta.content`` text out of relayed chat-completion SSE bytes.

    Upstream chunks can split lines anywhere, so partial lines are buffered
    until their newline arrives.
    """

    def __init__(self):
        self._buffer = ""

    def feed(self, data: bytes) -> list[str]:
        self._buffer += data.decode("utf-8", errors="replace")
        *lines, self._buffer = self._buffer.split("\n")
        texts: list[str] = []
        for line in lines:
            line = line.strip()
            if not line.startswith("data:"):
                continue
            payload = line[len("data:"):].strip()
            if not payload or payload == "[DONE]":
                continue
            try:
                chunk = json.loads(payload)
            except json.JSONDecodeError:
                continue
            for choice in chunk.get("choices") or []:
                content = (choice.get("delta") or {}).get("content")
                if content:
                    texts.append(content)
        return texts


async def run_analysis(keyword: str, raw: bool = False) -> int:
    """Run the pipeline for ``keyword`` and print the report as it streams."""
    try:
        config = PipelineConfig.from_settings()
    except ConfigurationError as exc:
        print(f"[!] {exc}: set GEMINI_API_KEY and GEMINI_BASE_URL", file=sys.stderr)
        return 1

    sink = FrameSink()
    pipeline = IntentPipeline(config)
    task = asyncio.create_task(pipeline.run(keyword, sink))
    decoder = CompletionTextDecoder()

    async for frame in sink.frames():
        if raw:
            sys.stdout.write(frame.encode().decode("utf-8", errors="replace"))
        elif frame.kind is FrameKind.STATUS:
            sys.stdout.write(frame.text)
        elif frame.kind is FrameKind.UPSTREAM:
            sys.stdout.write("".join(decoder.feed(frame.payload)))
        sys.stdout.flush()

    await task
    print()
    return 0


def serve(host: str, port: int, reload: bool) -> None:
    import uvicorn

    uvicorn.run("serp_intent.main:app", host=host, port=port, reload=reload, log_level="info")


def main():
    parser = argparse.ArgumentParser(description="SERP Intent analysis tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze one keyword and print the report")
    analyze.add_argument("keyword", help="Search keyword to analyze")
    analyze.add_argument("--raw", action="store_true", help="Print raw SSE frames")

    server = subparsers.add_parser("serve", help="Run the HTTP API")
    server.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    server.add_argument("--port", type=int, default=8000, help="Port to bind to")
    server.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return
    sys.exit(asyncio.run(run_analysis(args.keyword, raw=args.raw)))


if __name__ == "__main__":
    main()
