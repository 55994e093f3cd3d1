"""LLM token pricing used to estimate the cost of each call.

Prices are USD per 1M tokens.  Lookups accept LiteLLM model identifiers
(``openai/gpt-4o``): the provider prefix is stripped first, then an exact
match is tried, then the longest table key the model name starts with.
"""

from __future__ import annotations

from typing import NamedTuple


class ModelPricing(NamedTuple):
    input_per_1m: float
    output_per_1m: float
    reasoning_per_1m: float | None = None


LLM_PRICING: dict[str, ModelPricing] = {
    # OpenAI GPT-4.1
    "gpt-4.1": ModelPricing(2.00, 8.00),
    "gpt-4.1-mini": ModelPricing(0.40, 1.60),
    "gpt-4.1-nano": ModelPricing(0.10, 0.40),
    # OpenAI GPT-4o
    "gpt-4o": ModelPricing(2.50, 10.00),
    "gpt-4o-2024-05-13": ModelPricing(5.00, 15.00),
    "gpt-4o-mini": ModelPricing(0.15, 0.60),
    # OpenAI o1 reasoning models
    "o1": ModelPricing(15.00, 60.00, 60.00),
    "o1-mini": ModelPricing(3.00, 12.00, 12.00),
    # OpenAI legacy
    "gpt-4-turbo": ModelPricing(10.00, 30.00),
    "gpt-4": ModelPricing(30.00, 60.00),
    "gpt-3.5-turbo": ModelPricing(0.50, 1.50),
    # Anthropic Claude
    "claude-3-5-sonnet": ModelPricing(3.00, 15.00),
    "claude-3-5-haiku": ModelPricing(0.80, 4.00),
    "claude-3-opus": ModelPricing(15.00, 75.00),
    "claude-3-haiku": ModelPricing(0.25, 1.25),
}

# Conservative estimate for unknown models
DEFAULT_PRICING = ModelPricing(10.00, 30.00)


def get_model_pricing(model: str) -> ModelPricing:
    """Return pricing for *model*, falling back to :data:`DEFAULT_PRICING`."""
    name = model.split("/", 1)[1] if "/" in model else model
    if name in LLM_PRICING:
        return LLM_PRICING[name]

    # "gpt-4o-2024-11-20" → "gpt-4o"; longest prefix so "gpt-4o-mini-x" is not "gpt-4o"
    prefixes = [key for key in LLM_PRICING if name.startswith(key)]
    if prefixes:
        return LLM_PRICING[max(prefixes, key=len)]

    return DEFAULT_PRICING


def estimate_cost(
    model: str,
    prompt_tokens: int,
    completion_tokens: int,
    reasoning_tokens: int = 0,
) -> float:
    """Estimated USD cost of one call, rounded to 6 decimals.

    Reasoning tokens are billed at the reasoning rate when the model has one;
    they are not double-counted in ``completion_tokens``.
    """
    pricing = get_model_pricing(model)
    cost = prompt_tokens / 1_000_000 * pricing.input_per_1m
    cost += completion_tokens / 1_000_000 * pricing.output_per_1m
    if reasoning_tokens and pricing.reasoning_per_1m is not None:
        cost += reasoning_tokens / 1_000_000 * pricing.reasoning_per_1m
    return round(cost, 6)


def format_cost(cost: float) -> str:
    """Format *cost* as dollars: 4 decimals under one cent, else 2."""
    if cost < 0.01:
        return f"${cost:.4f}"
    return f"${cost:.2f}"
