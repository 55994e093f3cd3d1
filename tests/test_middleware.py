"""Tests for request-id propagation and the LLM concurrency helper."""

import asyncio
import logging

import pytest

from services.concurrency import rate_limited_llm_call
from services.middleware import RequestIdLogFilter, bind_request_id, get_request_id


def _record() -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)


def test_log_filter_outside_request():
    record = _record()
    assert RequestIdLogFilter().filter(record) is True
    assert record.request_id == "-"


@pytest.mark.asyncio
async def test_bound_request_id_reaches_child_tasks():
    async def inner():
        bind_request_id("req-42")
        child = asyncio.create_task(_read_request_id())
        return await child

    # Run in a separate task so the binding does not leak into other tests.
    assert await asyncio.create_task(inner()) == "req-42"


async def _read_request_id() -> str:
    record = _record()
    RequestIdLogFilter().filter(record)
    return record.request_id


@pytest.mark.asyncio
async def test_bind_request_id_ignores_empty():
    async def inner():
        bind_request_id(None)
        return get_request_id()

    assert await asyncio.create_task(inner()) == "-"


@pytest.mark.asyncio
async def test_rate_limited_llm_call_passes_arguments():
    async def fake_call(a, b=0):
        return a + b

    assert await rate_limited_llm_call(fake_call, 1, b=2) == 3
