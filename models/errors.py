"""Structured error codes for relay error frames.

The ``error`` field of a terminal error frame always carries the raw,
human-readable failure message.  The ``code`` field carries one of the
frozen codes below so the browser can branch without parsing text::

    {"type": "error", "error": "OpenAI API error: Rate limit exceeded",
     "code": "RATE_LIMITED", "isComplete": true}
"""

from __future__ import annotations

import asyncio
import re
from enum import Enum

from errors.exceptions import UpstreamGenerationError, UpstreamTimeoutError


class ErrorCode(str, Enum):
    """Frozen error codes shared with the frontend."""

    INVALID_REQUEST = "INVALID_REQUEST"
    RATE_LIMITED = "RATE_LIMITED"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    LLM_PROVIDER_ERROR = "LLM_PROVIDER_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


UNKNOWN_ERROR_MESSAGE = "Unknown error"

_RATE_LIMIT_RE = re.compile(r"rate.?limit|\b429\b|too many requests", re.IGNORECASE)

_TIMEOUT_RE = re.compile(r"timeout|timed out", re.IGNORECASE)

# Provider-side failures: API errors, connection problems, context-length
# and token limits, content-safety filters.
_LLM_PROVIDER_RE = re.compile(
    r"\bapi\b|openai|anthropic|provider|connection|context length|token"
    r"|content filter|safety",
    re.IGNORECASE,
)


def error_message(exc: BaseException) -> str:
    """Human-readable message for an error frame."""
    return str(exc) or UNKNOWN_ERROR_MESSAGE


def classify_upstream_error(exc: BaseException) -> ErrorCode:
    """Classify an upstream failure into an :class:`ErrorCode`.

    Classification order (first match wins):
        1. Timeout exception types.
        2. Rate-limit wording in the message.
        3. Timeout wording in the message.
        4. Provider error type or provider wording.
        5. Fallback — ``INTERNAL_ERROR``.
    """
    if isinstance(exc, (UpstreamTimeoutError, asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.TIMEOUT_ERROR

    text = str(exc)
    if _RATE_LIMIT_RE.search(text):
        return ErrorCode.RATE_LIMITED
    if _TIMEOUT_RE.search(text):
        return ErrorCode.TIMEOUT_ERROR
    if isinstance(exc, UpstreamGenerationError) or _LLM_PROVIDER_RE.search(text):
        return ErrorCode.LLM_PROVIDER_ERROR

    return ErrorCode.INTERNAL_ERROR


def format_error(code: ErrorCode, detail: str) -> str:
    """Format an error for logs: ``{ERROR_CODE}: {detail}``."""
    return f"{code.value}: {detail}"
