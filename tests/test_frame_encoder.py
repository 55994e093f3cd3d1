"""Tests for SSEFrameEncoder and the OutputFrame wire schema."""

from __future__ import annotations

import json

from models.errors import ErrorCode
from models.frames import FrameType, OutputFrame
from services.frame_encoder import STREAM_HEADERS, SSEFrameEncoder, parse_sse


def _parse_first(sse_str: str) -> dict:
    results = parse_sse(sse_str)
    assert len(results) == 1, f"Expected one payload, got: {sse_str!r}"
    return results[0]


class TestWireSchema:
    def test_started(self):
        assert OutputFrame.started().to_wire() == {"type": "started", "isComplete": False}

    def test_content(self):
        assert OutputFrame.content_frame("Hello").to_wire() == {
            "type": "content",
            "content": "Hello",
            "isComplete": False,
        }

    def test_complete(self):
        assert OutputFrame.complete("Hello world").to_wire() == {
            "type": "complete",
            "content": "Hello world",
            "isComplete": True,
        }

    def test_error(self):
        frame = OutputFrame.failed("Rate limit exceeded", ErrorCode.RATE_LIMITED)
        assert frame.to_wire() == {
            "type": "error",
            "error": "Rate limit exceeded",
            "code": "RATE_LIMITED",
            "isComplete": True,
        }

    def test_empty_content_is_kept(self):
        assert OutputFrame.content_frame("").to_wire()["content"] == ""

    def test_terminal_flags(self):
        assert not OutputFrame.started().is_terminal
        assert not OutputFrame.content_frame("x").is_terminal
        assert OutputFrame.complete("x").is_terminal
        assert OutputFrame.failed("x").is_terminal
        assert OutputFrame.failed("x").code is ErrorCode.INTERNAL_ERROR


class TestSSEFormat:
    def test_line_format(self):
        raw = SSEFrameEncoder().encode(OutputFrame.started())
        assert raw.startswith("data: ")
        assert raw.endswith("\n\n")
        assert raw.count("\n") == 2

    def test_json_is_valid(self):
        raw = SSEFrameEncoder().encode(OutputFrame.content_frame("x"))
        parsed = json.loads(raw[len("data: "):].strip())
        assert parsed["type"] == FrameType.CONTENT.value

    def test_unicode_not_escaped(self):
        raw = SSEFrameEncoder().encode(OutputFrame.content_frame("熵是无序的度量"))
        assert "熵是无序的度量" in raw
        assert "\\u" not in raw

    def test_newlines_in_content_stay_in_one_event(self):
        raw = SSEFrameEncoder().encode(OutputFrame.content_frame("## Title\n\nBody"))
        assert raw.count("\n") == 2
        assert _parse_first(raw)["content"] == "## Title\n\nBody"

    def test_heartbeat_is_comment(self):
        hb = SSEFrameEncoder().heartbeat()
        assert hb.startswith(":")
        assert parse_sse(hb) == []


def test_parse_sse_keeps_non_json_payloads():
    assert parse_sse("data: [DONE]\n\n") == ["[DONE]"]


def test_stream_headers():
    assert STREAM_HEADERS["Cache-Control"] == "no-cache"
    assert STREAM_HEADERS["Connection"] == "keep-alive"
