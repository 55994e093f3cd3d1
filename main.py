"""FastAPI entry point for the Explain Anything streaming relay."""

import logging
from contextlib import asynccontextmanager

import litellm
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.concurrency import ConcurrencyLimitMiddleware
from services.middleware import RequestIdLogFilter, RequestIdMiddleware

settings = get_settings()


def configure_logging(level: str) -> None:
    """Root logging: one stream handler stamped with the request ID."""
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdLogFilter())
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s")
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    # LiteLLM is chatty at INFO
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)


configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# ── Global LiteLLM settings ──────────────────────────────────
litellm.request_timeout = settings.llm_request_timeout


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log effective relay configuration on startup."""
    logger.info(
        "Starting %s (model=%s, upstream_timeout=%s, cancel_on_disconnect=%s)",
        settings.service_name,
        settings.default_model,
        settings.relay_upstream_timeout,
        settings.relay_cancel_on_disconnect,
    )
    yield
    logger.info("Shutting down %s", settings.service_name)


app = FastAPI(
    title="Explain Anything Relay",
    description="Streams LLM generations to the browser as framed SSE messages",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack ──────────────────────────────────────────
# add_middleware prepends, so register innermost first:
# CORS → RequestId → ConcurrencyLimit → route handler
app.add_middleware(ConcurrencyLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Register routers ────────────────────────────────────────
from api.explain import router as explain_router  # noqa: E402
from api.health import router as health_router  # noqa: E402
from api.models_routes import router as models_router  # noqa: E402
from api.stream_chat import router as stream_chat_router  # noqa: E402

app.include_router(health_router)
app.include_router(models_router)
app.include_router(stream_chat_router)
app.include_router(explain_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=4,
            timeout_keep_alive=120,
        )
