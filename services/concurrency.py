"""Global concurrency controls for LLM API calls and streaming endpoints.

Prevents overwhelming provider rate limits under load.  Uses
asyncio.Semaphore to cap the number of *concurrent* outbound LLM requests
per worker process.

All middleware uses pure ASGI implementation (not BaseHTTPMiddleware)
to preserve SSE streaming compatibility.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Coroutine

from starlette.types import ASGIApp, Receive, Scope, Send

from config.settings import get_settings

logger = logging.getLogger(__name__)

# ── Global LLM semaphore ─────────────────────────────────────

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init to ensure semaphore is bound to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        limit = get_settings().max_concurrent_llm
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("LLM concurrency semaphore initialized (max=%d)", limit)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Coroutine[Any, Any, Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Execute an async LLM function with concurrency limiting.

    Usage::

        result = await rate_limited_llm_call(litellm.acompletion, model=..., messages=...)
    """
    sem = _get_semaphore()
    async with sem:
        return await func(*args, **kwargs)


# ── Streaming endpoint concurrency middleware (pure ASGI) ─────
# Limits concurrent requests to the relay endpoints.
# Requests that exceed the limit receive 503 instead of queuing forever.

_stream_semaphore: asyncio.Semaphore | None = None

# Paths that hold an upstream LLM call open for the whole response
STREAM_PATHS = frozenset({
    "/api/stream-chat",
    "/api/explain",
})


def _get_stream_semaphore() -> asyncio.Semaphore:
    global _stream_semaphore
    if _stream_semaphore is None:
        limit = get_settings().max_concurrent_streams
        _stream_semaphore = asyncio.Semaphore(limit)
        logger.info("Stream endpoint semaphore initialized (max=%d)", limit)
    return _stream_semaphore


class ConcurrencyLimitMiddleware:
    """Pure ASGI middleware — reject stream requests when the worker is at capacity.

    Returns HTTP 503 with Retry-After header for overloaded endpoints.
    Lightweight endpoints (health, models, metrics) pass through unaffected.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        if path not in STREAM_PATHS:
            await self.app(scope, receive, send)
            return

        sem = _get_stream_semaphore()

        # Try to acquire without blocking — if full, return 503
        if sem.locked():
            logger.warning("Concurrency limit reached for %s — returning 503", path)
            body = json.dumps(
                {"error": "Server busy — too many concurrent requests. Please retry."}
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({
                "type": "http.response.body",
                "body": body,
            })
            return

        async with sem:
            await self.app(scope, receive, send)
