"""Relay frame encoder — SSE ``data:`` framing for output frames.

Each frame is written as one SSE event: ``"data: {json}\\n\\n"``.  The JSON
object follows a single schema for every route::

    {"type": "started", "isComplete": false}
    {"type": "content", "content": "Hello", "isComplete": false}
    {"type": "complete", "content": "Hello world", "isComplete": true}
    {"type": "error", "error": "...", "code": "RATE_LIMITED", "isComplete": true}

While the upstream call is quiet the stream may carry SSE comment lines
(``": heartbeat\\n\\n"``); consumers ignore them.
"""

from __future__ import annotations

import json
from typing import Any, Protocol

from models.frames import OutputFrame

STREAM_MEDIA_TYPE = "text/event-stream"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class FrameEncoder(Protocol):
    """Serialization strategy for a relay's outbound transport."""

    def encode(self, frame: OutputFrame) -> str: ...

    def heartbeat(self) -> str: ...


class SSEFrameEncoder:
    """Encode output frames as SSE ``data:`` events.

    Every public method returns a ready-to-yield SSE string.
    """

    @staticmethod
    def _sse(payload: dict[str, Any]) -> str:
        return f"data: {json.dumps(payload, ensure_ascii=False, default=str)}\n\n"

    def encode(self, frame: OutputFrame) -> str:
        return self._sse(frame.to_wire())

    def heartbeat(self) -> str:
        return ": heartbeat\n\n"


def parse_sse(raw_text: str) -> list[dict | str]:
    """Parse raw SSE text into JSON payloads.

    Comment lines are skipped; payloads that are not valid JSON are returned
    as raw strings.
    """
    results: list[dict | str] = []
    for line in raw_text.strip().split("\n"):
        line = line.strip()
        if not line.startswith("data: "):
            continue
        payload = line[len("data: "):]
        try:
            results.append(json.loads(payload))
        except json.JSONDecodeError:
            results.append(payload)
    return results
