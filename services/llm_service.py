"""Unified LLM service powered by LiteLLM.

Supports any provider LiteLLM supports via model name prefix:
    - openai/gpt-4.1-mini
    - anthropic/claude-3-5-sonnet-20241022
    - dashscope/qwen-max

:meth:`LLMService.generate` is the upstream generation operation consumed by
:class:`services.relay.StreamingRelay`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import litellm

from config.llm_config import LLMConfig
from config.llm_pricing import format_cost
from config.settings import get_settings
from errors.exceptions import UpstreamGenerationError
from services.concurrency import rate_limited_llm_call
from services.metrics import MetricsCollector, get_metrics_collector

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."


def _usage_of(response: Any) -> dict[str, int]:
    """Extract token usage from a LiteLLM response or final stream chunk."""
    usage = getattr(response, "usage", None)
    if not usage:
        return {}
    details = getattr(usage, "completion_tokens_details", None)
    return {
        "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
        "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
        "reasoning_tokens": getattr(details, "reasoning_tokens", 0) or 0,
    }


class LLMService:
    """Thin async wrapper around ``litellm.acompletion()``.

    Accepts an optional :class:`LLMConfig` that is merged on top of the
    global defaults from Settings.  Individual calls can still override
    any parameter via ``**overrides``.

    Priority chain (low → high):
        .env global defaults  →  service-level LLMConfig  →  per-call overrides
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        model: str | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        metrics: MetricsCollector | None = None,
    ):
        settings = get_settings()
        self._config = settings.get_default_llm_config()

        if config:
            self._config = self._config.merge(config)
        if model:
            self._config = self._config.merge(LLMConfig(model=model))

        self._system_prompt = system_prompt
        self._metrics = metrics or get_metrics_collector()

    @property
    def model(self) -> str | None:
        return self._config.model

    async def generate(
        self,
        prompt: str,
        context: str,
        caller_id: str,
        model: str | None = None,
        streaming: bool = True,
        on_chunk: Callable[[str], None] | None = None,
        **overrides: Any,
    ) -> str:
        """Run one completion and return the full generated text.

        With *streaming* enabled and an *on_chunk* callback, the provider is
        called in stream mode and *on_chunk* receives the cumulative text after
        every non-empty delta.

        Args:
            prompt:     User prompt.
            context:    Call-source label recorded with the usage metrics.
            caller_id:  End-user identity, forwarded as the provider ``user``.
            model:      Per-call model override.
            streaming:  Stream the response through *on_chunk*.
            on_chunk:   Synchronous callback receiving the text so far.
            **overrides: Per-call parameter overrides (e.g. ``temperature=0.2``).

        Raises:
            UpstreamGenerationError: the provider returned no text.
            Any LiteLLM exception (rate limit, auth, connection) unchanged.
        """
        model_name = model or self._config.model
        kwargs: dict = {
            "model": model_name,
            "messages": [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": prompt},
            ],
            "user": caller_id,
            **self._config.to_litellm_kwargs(),
        }
        kwargs.update(overrides)

        started = time.monotonic()
        status = "error"
        usage: dict[str, int] = {}
        try:
            if streaming and on_chunk is not None:
                text, usage = await rate_limited_llm_call(
                    self._stream_completion, kwargs, on_chunk
                )
            else:
                response = await rate_limited_llm_call(litellm.acompletion, **kwargs)
                text = response.choices[0].message.content or ""
                usage = _usage_of(response)

            if not text:
                raise UpstreamGenerationError(
                    "No response received from LLM provider", model=model_name
                )
            status = "ok"
            return text
        finally:
            latency_ms = (time.monotonic() - started) * 1000
            cost = self._metrics.record_llm_call(
                model=model_name or "unknown",
                status=status,
                latency_ms=latency_ms,
                call_source=context,
                **usage,
            )
            logger.info(
                "LLM call source=%s model=%s status=%s latency_ms=%.0f tokens=%s/%s cost=%s",
                context,
                model_name,
                status,
                latency_ms,
                usage.get("prompt_tokens", 0),
                usage.get("completion_tokens", 0),
                format_cost(cost),
            )

    async def _stream_completion(
        self,
        kwargs: dict,
        on_chunk: Callable[[str], None],
    ) -> tuple[str, dict[str, int]]:
        response = await litellm.acompletion(
            stream=True,
            stream_options={"include_usage": True},
            **kwargs,
        )
        accumulated = ""
        usage: dict[str, int] = {}
        async for chunk in response:
            chunk_usage = _usage_of(chunk)
            if chunk_usage:
                usage = chunk_usage
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                accumulated += delta
                on_chunk(accumulated)
        return accumulated, usage
