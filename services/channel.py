"""Frame channel — ordered, closable, single-response output sequence.

The relay is the only writer; the HTTP response generator is the only
reader.  Writes never block and never raise: once the channel is closed, the
consumer has detached, or a terminal frame went out, further frames are
dropped and :meth:`FrameChannel.send` returns ``False``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import AsyncIterator

from models.frames import OutputFrame

logger = logging.getLogger(__name__)

_CLOSED = object()


class FrameChannel:
    """Write-only (for the relay) ordered sequence of :class:`OutputFrame`."""

    def __init__(self, channel_id: str | None = None) -> None:
        self.channel_id = channel_id or uuid.uuid4().hex[:8]
        # Unbounded: the producer callback is synchronous and must not wait.
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._detached = False
        self._terminal_sent = False
        self._sent_count = 0
        self._producer: asyncio.Task | None = None
        self._cancel_requested = False

    # ── Writer side ──────────────────────────────────────────────

    def send(self, frame: OutputFrame) -> bool:
        """Append *frame*; return ``False`` if the frame was dropped."""
        if self._closed or self._terminal_sent:
            return False
        if self._detached:
            logger.debug("Channel %s detached — dropping %s frame", self.channel_id, frame.type.value)
            return False
        self._queue.put_nowait(frame)
        self._sent_count += 1
        if frame.is_terminal:
            self._terminal_sent = True
        return True

    def close(self) -> None:
        """Close the channel.  Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def bind_producer(self, task: asyncio.Task) -> None:
        self._producer = task

    @property
    def producer(self) -> asyncio.Task | None:
        return self._producer

    def request_cancel(self) -> None:
        """Mark the producer's upcoming cancellation as consumer-initiated."""
        self._cancel_requested = True

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested

    # ── Reader side ──────────────────────────────────────────────

    def detach(self) -> None:
        """Consumer went away: drop pending and future frames."""
        self._detached = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self.close()

    async def frames(self, heartbeat: float | None = None) -> AsyncIterator[OutputFrame | None]:
        """Yield frames in send order until the channel is closed.

        With *heartbeat* set, ``None`` is yielded each time that many seconds
        pass without a frame so the transport can keep the connection alive.
        """
        while True:
            try:
                if heartbeat:
                    item = await asyncio.wait_for(self._queue.get(), timeout=heartbeat)
                else:
                    item = await self._queue.get()
            except asyncio.TimeoutError:
                yield None
                continue
            if item is _CLOSED:
                return
            yield item

    def __aiter__(self) -> AsyncIterator[OutputFrame | None]:
        return self.frames()

    # ── State ────────────────────────────────────────────────────

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def terminal_sent(self) -> bool:
        return self._terminal_sent

    @property
    def sent_count(self) -> int:
        return self._sent_count
