"""In-memory LLM call and stream metrics.

Collects per-model LLM call usage (tokens, latency, estimated cost) and
per-route stream outcomes so ``GET /api/metrics`` and tests can assert
success rates, token totals and latency bounds.
"""

from __future__ import annotations

import math
import threading
from collections import defaultdict

from config.llm_pricing import estimate_cost


def _percentile(values: list[float], p: float) -> float:
    if not values:
        return 0.0
    if len(values) == 1:
        return values[0]
    ordered = sorted(values)
    pos = (len(ordered) - 1) * p
    lo = math.floor(pos)
    hi = math.ceil(pos)
    if lo == hi:
        return ordered[lo]
    frac = pos - lo
    return ordered[lo] * (1 - frac) + ordered[hi] * frac


def _new_usage() -> dict:
    return {
        "prompt_tokens": 0,
        "completion_tokens": 0,
        "reasoning_tokens": 0,
        "estimated_cost_usd": 0.0,
    }


class MetricsCollector:
    """Thread-safe in-memory metrics collector."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._llm_latencies: dict[str, list[float]] = defaultdict(list)
        self._llm_status: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._llm_usage: dict[str, dict] = defaultdict(_new_usage)
        self._llm_sources: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._stream_outcomes: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._stream_latencies: dict[str, list[float]] = defaultdict(list)
        self._stream_content_frames: dict[str, int] = defaultdict(int)

    def record_llm_call(
        self,
        *,
        model: str,
        status: str,
        latency_ms: float,
        call_source: str = "",
        prompt_tokens: int = 0,
        completion_tokens: int = 0,
        reasoning_tokens: int = 0,
    ) -> float:
        """Record one upstream LLM call; return its estimated cost in USD."""
        cost = estimate_cost(model, prompt_tokens, completion_tokens, reasoning_tokens)
        with self._lock:
            self._llm_latencies[model].append(float(latency_ms))
            self._llm_status[model][status] += 1
            usage = self._llm_usage[model]
            usage["prompt_tokens"] += prompt_tokens
            usage["completion_tokens"] += completion_tokens
            usage["reasoning_tokens"] += reasoning_tokens
            usage["estimated_cost_usd"] = round(usage["estimated_cost_usd"] + cost, 6)
            if call_source:
                self._llm_sources[model][call_source] += 1
        return cost

    def record_stream(
        self,
        *,
        route: str,
        outcome: str,
        content_frames: int = 0,
        latency_ms: float = 0.0,
    ) -> None:
        """Record how one relayed stream ended (complete / error / cancelled)."""
        with self._lock:
            self._stream_outcomes[route][outcome] += 1
            self._stream_latencies[route].append(float(latency_ms))
            self._stream_content_frames[route] += content_frames

    def snapshot(self) -> dict:
        with self._lock:
            llm_metrics = {}
            for model, latencies in self._llm_latencies.items():
                status_map = self._llm_status.get(model, {})
                total = sum(status_map.values())
                ok_count = status_map.get("ok", 0)
                llm_metrics[model] = {
                    "count": total,
                    "success_rate": (ok_count / total) if total else 0.0,
                    "latency_p50_ms": round(_percentile(latencies, 0.5), 2),
                    "latency_p95_ms": round(_percentile(latencies, 0.95), 2),
                    "status_breakdown": dict(status_map),
                    "call_sources": dict(self._llm_sources.get(model, {})),
                    **self._llm_usage[model],
                }

            stream_metrics = {}
            for route, outcomes in self._stream_outcomes.items():
                latencies = self._stream_latencies.get(route, [])
                stream_metrics[route] = {
                    "count": sum(outcomes.values()),
                    "outcomes": dict(outcomes),
                    "content_frames": self._stream_content_frames.get(route, 0),
                    "latency_p50_ms": round(_percentile(latencies, 0.5), 2),
                    "latency_p95_ms": round(_percentile(latencies, 0.95), 2),
                }

            return {
                "llm": llm_metrics,
                "streams": stream_metrics,
            }

    def reset(self) -> None:
        with self._lock:
            self._llm_latencies.clear()
            self._llm_status.clear()
            self._llm_usage.clear()
            self._llm_sources.clear()
            self._stream_outcomes.clear()
            self._stream_latencies.clear()
            self._stream_content_frames.clear()


_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    return _metrics_collector
