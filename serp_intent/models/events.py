from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

STATUS_CHUNK_ID = "status-update"
KEEP_ALIVE_COMMENT = "keep-alive"


class FrameKind(str, Enum):
    STATUS = "status"
    UPSTREAM = "upstream"
    KEEP_ALIVE = "keep_alive"


@dataclass(frozen=True, slots=True)
class StreamFrame:
    """One unit of the outbound event stream.

    Status frames carry locally generated text and are shaped like a
    chat-completion chunk so clients render them the same way as model
    output. Upstream frames carry provider bytes that are forwarded as-is.
    """

    kind: FrameKind
    text: str = ""
    payload: bytes = b""

    def encode(self) -> bytes:
        if self.kind is FrameKind.UPSTREAM:
            return self.payload
        if self.kind is FrameKind.KEEP_ALIVE:
            return f": {KEEP_ALIVE_COMMENT}\n\n".encode("utf-8")
        chunk = {
            "id": STATUS_CHUNK_ID,
            "object": "chat.completion.chunk",
            "choices": [
                {"index": 0, "delta": {"content": self.text}, "finish_reason": None}
            ],
        }
        return f"data: {json.dumps(chunk, ensure_ascii=False)}\n\n".encode("utf-8")
