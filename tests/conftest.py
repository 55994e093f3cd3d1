"""Shared pytest fixtures for relay tests.

Provides:
- ``metrics_collector``: Fresh MetricsCollector per test
- ``fake_upstream``: Factory for scripted upstream generation stubs
- ``client``: httpx AsyncClient bound to the FastAPI app
"""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from services.metrics import MetricsCollector, get_metrics_collector


class FakeUpstream:
    """Scripted upstream generation operation.

    Invokes ``on_chunk`` with each of *chunks*, then raises *error* or
    returns *result*.  Every call is recorded in :attr:`calls`.
    """

    def __init__(
        self,
        chunks: list[str] | None = None,
        result: object = "",
        error: Exception | None = None,
        fail_after: int | None = None,
    ) -> None:
        self.chunks = chunks or []
        self.result = result
        self.error = error
        self.fail_after = fail_after
        self.calls: list[dict] = []

    async def __call__(self, prompt, context, caller_id, model, streaming, on_chunk, **overrides):
        self.calls.append(
            {
                "prompt": prompt,
                "context": context,
                "caller_id": caller_id,
                "model": model,
                "streaming": streaming,
                "on_chunk": on_chunk,
                "overrides": overrides,
            }
        )
        for i, chunk in enumerate(self.chunks):
            if self.error is not None and self.fail_after == i:
                raise self.error
            if on_chunk is not None:
                on_chunk(chunk)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def fake_upstream():
    """Factory fixture — ``fake_upstream(chunks=[...], result=...)``."""
    return FakeUpstream


@pytest.fixture
def metrics_collector() -> MetricsCollector:
    """Fresh metrics collector — isolated per test."""
    return MetricsCollector()


@pytest.fixture(autouse=True)
def _reset_global_metrics():
    yield
    get_metrics_collector().reset()


@pytest.fixture
async def client():
    from main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
