"""Output frame model for the streaming relay.

A stream is a sequence of frames: one ``started`` frame, zero or more
``content`` frames, then exactly one terminal frame (``complete`` or
``error``).  ``content`` frames carry the cumulative text produced so far,
exactly as the upstream callback reported it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from models.base import CamelModel
from models.errors import ErrorCode


class FrameType(str, Enum):
    STARTED = "started"
    CONTENT = "content"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_FRAME_TYPES = frozenset({FrameType.COMPLETE, FrameType.ERROR})


class OutputFrame(CamelModel):
    """One self-describing message unit within a streamed response."""

    type: FrameType
    content: str | None = None
    error: str | None = None
    code: ErrorCode | None = None

    # ── Constructors ─────────────────────────────────────────────

    @classmethod
    def started(cls) -> OutputFrame:
        return cls(type=FrameType.STARTED)

    @classmethod
    def content_frame(cls, text: str) -> OutputFrame:
        return cls(type=FrameType.CONTENT, content=text)

    @classmethod
    def complete(cls, text: str) -> OutputFrame:
        return cls(type=FrameType.COMPLETE, content=text)

    @classmethod
    def failed(
        cls, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR
    ) -> OutputFrame:
        return cls(type=FrameType.ERROR, error=message, code=code)

    # ── Helpers ──────────────────────────────────────────────────

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_FRAME_TYPES

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the wire schema, dropping unset payload fields."""
        payload = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        payload["isComplete"] = self.is_terminal
        return payload
