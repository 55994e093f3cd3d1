"""Streaming relay — callback-driven LLM generation → framed SSE channel.

Bridges a single-shot upstream generation call that reports progress through
a synchronous ``on_chunk`` callback to an ordered, push-based frame channel:

    [Idle] --valid request-->   [Open]      emits ``started``
    [Idle] --invalid request--> [Rejected]  raises, no channel, no frames
    [Open] --on_chunk(text)-->  [Open]      emits ``content``
    [Open] --returns(text)-->   [Closed]    emits ``complete``
    [Open] --raises(exc)-->     [Closed]    emits ``error``

Every accepted request ends with exactly one terminal frame.  Upstream
failures never escape the relay; they become the ``error`` frame, after any
partial content already sent.  The upstream call is attempted once.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Awaitable, Callable, Optional

from config.settings import get_settings
from errors.exceptions import UpstreamGenerationError, UpstreamTimeoutError
from models.errors import ErrorCode, classify_upstream_error, error_message, format_error
from models.frames import OutputFrame
from models.request import GenerationRequest
from services.channel import FrameChannel
from services.frame_encoder import FrameEncoder, SSEFrameEncoder
from services.metrics import MetricsCollector, get_metrics_collector

logger = logging.getLogger(__name__)

OnChunk = Callable[[str], None]

# generate(prompt, context, caller_id, model, streaming, on_chunk) -> final text
UpstreamGenerate = Callable[
    [str, str, str, Optional[str], bool, Optional[OnChunk]],
    Awaitable[str],
]

_UNSET = object()


def _task_is_cancelling() -> bool:
    """True when the current task has a pending ``cancel()`` (Python 3.11+)."""
    task = asyncio.current_task()
    cancelling = getattr(task, "cancelling", None)
    return bool(cancelling and cancelling())


class StreamingRelay:
    """Relay one upstream generation per request into a frame channel.

    One instance per route; instances hold no per-request state, so
    concurrent requests never share a channel.

    Args:
        generate:  Upstream generation operation.
        encoder:   Frame serialization strategy for :meth:`stream`.
        call_source:  Default context label forwarded upstream.
        default_timeout:  Upstream timeout (seconds) when the request sets none.
            Defaults to ``Settings.relay_upstream_timeout``; ``None`` = no limit.
        cancel_on_disconnect:  Cancel the upstream call when the consumer
            disconnects.  Defaults to ``Settings.relay_cancel_on_disconnect``.
        heartbeat_interval:  Seconds of silence before :meth:`stream` emits a
            heartbeat comment.  Defaults to ``Settings.relay_heartbeat_interval``.
    """

    def __init__(
        self,
        generate: UpstreamGenerate,
        encoder: FrameEncoder | None = None,
        *,
        call_source: str = "relay",
        default_timeout: float | None | object = _UNSET,
        cancel_on_disconnect: bool | None = None,
        heartbeat_interval: float | None | object = _UNSET,
        metrics: MetricsCollector | None = None,
    ) -> None:
        settings = get_settings()
        self._generate = generate
        self._encoder = encoder or SSEFrameEncoder()
        self.call_source = call_source
        self._default_timeout = (
            settings.relay_upstream_timeout if default_timeout is _UNSET else default_timeout
        )
        self._cancel_on_disconnect = (
            settings.relay_cancel_on_disconnect
            if cancel_on_disconnect is None
            else cancel_on_disconnect
        )
        self._heartbeat_interval = (
            settings.relay_heartbeat_interval
            if heartbeat_interval is _UNSET
            else heartbeat_interval
        )
        self._metrics = metrics or get_metrics_collector()
        # Strong refs so producers outliving a disconnected consumer are not GC'd.
        self._producers: set[asyncio.Task] = set()

    # ── Public contract ──────────────────────────────────────────

    def handle_generation_request(self, request: GenerationRequest) -> FrameChannel:
        """Validate *request*, open a channel and start the upstream call.

        Must be called from a running event loop.

        Raises:
            InvalidRequestError: required field missing; nothing was opened.
        """
        request.validate_required()

        channel = FrameChannel(channel_id=request.request_id)
        channel.send(OutputFrame.started())

        task = asyncio.create_task(self._produce(request, channel))
        self._producers.add(task)
        task.add_done_callback(self._producers.discard)
        channel.bind_producer(task)
        return channel

    async def stream(self, request: GenerationRequest) -> AsyncIterator[str]:
        """Encoded frames for a streaming HTTP response body.

        If the consumer goes away before the channel closes, the channel is
        detached so remaining writes become no-ops.
        """
        channel = self.handle_generation_request(request)
        drained = False
        try:
            async for frame in channel.frames(heartbeat=self._heartbeat_interval):
                if frame is None:
                    yield self._encoder.heartbeat()
                    continue
                yield self._encoder.encode(frame)
            drained = True
        finally:
            if not drained:
                self._on_consumer_disconnect(channel)

    async def run(self, request: GenerationRequest) -> list[OutputFrame]:
        """Drive *request* to its terminal frame and return every frame."""
        channel = self.handle_generation_request(request)
        return [frame async for frame in channel]

    @property
    def in_flight(self) -> int:
        """Upstream calls still running (including orphaned ones)."""
        return len(self._producers)

    # ── Internals ────────────────────────────────────────────────

    async def _produce(self, request: GenerationRequest, channel: FrameChannel) -> None:
        opts = request.options
        context = opts.context or self.call_source
        timeout = opts.timeout_seconds or self._default_timeout
        content_frames = 0

        def on_chunk(text: str) -> None:
            nonlocal content_frames
            if channel.send(OutputFrame.content_frame(text)):
                content_frames += 1

        started = time.monotonic()
        outcome = "error"
        try:
            final_text = await self._call_upstream(
                request, context, on_chunk if opts.streaming else None, timeout
            )
            if not isinstance(final_text, str):
                raise UpstreamGenerationError(
                    f"Upstream returned {type(final_text).__name__} instead of text",
                    model=opts.model,
                )
        except asyncio.CancelledError as exc:
            if channel.cancel_requested or _task_is_cancelling():
                outcome = "cancelled"
                logger.info(
                    "[Relay] %s upstream cancelled after %d content frames (channel=%s)",
                    context, content_frames, channel.channel_id,
                )
                raise
            # Raised by the upstream itself; this task was never cancelled.
            failure = UpstreamGenerationError(
                "Upstream generation was cancelled unexpectedly", model=opts.model
            )
            failure.__cause__ = exc
            self._send_failure(channel, context, content_frames, failure)
        except Exception as exc:
            self._send_failure(channel, context, content_frames, exc)
        else:
            outcome = "complete"
            channel.send(OutputFrame.complete(final_text))
        finally:
            channel.close()
            elapsed_ms = (time.monotonic() - started) * 1000
            self._metrics.record_stream(
                route=context,
                outcome=outcome,
                content_frames=content_frames,
                latency_ms=elapsed_ms,
            )
            logger.info(
                "[Relay] %s finished outcome=%s content_frames=%d latency_ms=%.0f caller=%s",
                context, outcome, content_frames, elapsed_ms, request.caller_id,
            )

    @staticmethod
    def _send_failure(
        channel: FrameChannel, context: str, content_frames: int, exc: BaseException
    ) -> None:
        code = classify_upstream_error(exc)
        logger.warning(
            "[Relay] %s upstream failed after %d content frames: %s",
            context, content_frames, format_error(code, error_message(exc)),
            exc_info=code is ErrorCode.INTERNAL_ERROR,
        )
        channel.send(OutputFrame.failed(error_message(exc), code))

    async def _call_upstream(
        self,
        request: GenerationRequest,
        context: str,
        on_chunk: OnChunk | None,
        timeout: float | None,
    ) -> str:
        opts = request.options
        overrides = opts.llm_overrides()
        call = self._generate(
            request.prompt_text,
            context,
            request.caller_id,
            opts.model,
            opts.streaming,
            on_chunk,
            **overrides,
        )
        if not timeout:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise UpstreamTimeoutError(timeout, model=opts.model) from exc

    def _on_consumer_disconnect(self, channel: FrameChannel) -> None:
        channel.detach()
        producer = channel.producer
        if producer is None or producer.done():
            return
        if self._cancel_on_disconnect:
            logger.info("[Relay] consumer disconnected — cancelling upstream (channel=%s)", channel.channel_id)
            channel.request_cancel()
            producer.cancel()
        else:
            logger.info(
                "[Relay] consumer disconnected — upstream continues until it resolves (channel=%s)",
                channel.channel_id,
            )
