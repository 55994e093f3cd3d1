"""Health check endpoint — service and LLM configuration status."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from config.settings import get_settings

router = APIRouter(prefix="/api", tags=["health"])

SERVICE_VERSION = "0.1.0"


def _llm_check() -> dict:
    settings = get_settings()
    model = settings.default_model
    if not model:
        return {"status": "fail", "message": "DEFAULT_MODEL is not configured"}
    if not settings.provider_key_for(model):
        provider = model.split("/", 1)[0] if "/" in model else "openai"
        return {
            "status": "fail",
            "message": f"Missing API key for provider '{provider}'",
            "details": {"model": model},
        }
    return {"status": "pass", "details": {"model": model}}


@router.get("/health")
async def health():
    """Return 200 when every check passes, 503 otherwise."""
    checks = {"llm": _llm_check()}
    healthy = all(c["status"] == "pass" for c in checks.values())
    return JSONResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "service": get_settings().service_name,
            "version": SERVICE_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": checks,
        },
        status_code=200 if healthy else 503,
        headers={"Cache-Control": "no-store, max-age=0"},
    )
