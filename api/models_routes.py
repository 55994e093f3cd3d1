"""Model listing and usage metrics endpoints."""

from fastapi import APIRouter

from config.settings import get_settings
from services.metrics import get_metrics_collector

router = APIRouter()


@router.get("/models")
async def list_models():
    """List supported model examples and the current default."""
    settings = get_settings()
    return {
        "default": settings.default_model,
        "examples": [
            "openai/gpt-4.1-mini",
            "openai/gpt-4o",
            "openai/gpt-4o-mini",
            "anthropic/claude-3-5-sonnet-20241022",
            "dashscope/qwen-max",
        ],
    }


@router.get("/api/metrics")
async def usage_metrics():
    """LLM usage (tokens, latency, estimated cost) and stream outcomes."""
    return get_metrics_collector().snapshot()
