"""Stream-chat API — relay a free-form prompt to the LLM as SSE frames."""

from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from starlette.responses import Response, StreamingResponse

from errors.exceptions import InvalidRequestError
from models.request import GenerationRequest, StreamChatRequest
from services.frame_encoder import STREAM_HEADERS, STREAM_MEDIA_TYPE
from services.llm_service import LLMService
from services.middleware import bind_request_id
from services.relay import StreamingRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["stream"])

CALL_SOURCE = "stream-chat-api"

# Module-level instances — reused across requests.
_llm = LLMService()
_relay = StreamingRelay(_llm.generate, call_source=CALL_SOURCE)


def reject(call_source: str, error: InvalidRequestError) -> JSONResponse:
    """400 answer for a request rejected before any stream is opened."""
    logger.info("Rejected %s request: %s", call_source, error)
    return JSONResponse({"error": str(error)}, status_code=400)


def relay_response(relay: StreamingRelay, gen_request: GenerationRequest) -> Response:
    """Validate *gen_request* and stream it through *relay*.

    Missing required fields answer 400 before any stream is opened.
    """
    try:
        gen_request.validate_required()
    except InvalidRequestError as e:
        return reject(relay.call_source, e)

    bind_request_id(gen_request.request_id)
    return StreamingResponse(
        relay.stream(gen_request),
        media_type=STREAM_MEDIA_TYPE,
        headers=STREAM_HEADERS,
    )


@router.post("/stream-chat")
async def stream_chat(req: StreamChatRequest):
    """Stream an LLM answer to ``prompt`` as SSE frames.

    Frames: ``started`` → ``content``* (cumulative text) → ``complete`` or
    ``error``.  Upstream failures arrive as the terminal ``error`` frame of
    a 200 response.
    """
    gen_request = req.to_generation_request(context=CALL_SOURCE)
    return relay_response(_relay, gen_request)
