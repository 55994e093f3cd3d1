"""Explain API — stream an encyclopedia-style explanation of a topic."""

from __future__ import annotations

from fastapi import APIRouter

from api.stream_chat import reject, relay_response
from config.prompts.explanation import EXPLANATION_SYSTEM_PROMPT
from errors.exceptions import InvalidRequestError
from models.request import ExplainRequest
from services.llm_service import LLMService
from services.relay import StreamingRelay

router = APIRouter(prefix="/api", tags=["stream"])

CALL_SOURCE = "explanation-api"

_llm = LLMService(system_prompt=EXPLANATION_SYSTEM_PROMPT)
_relay = StreamingRelay(_llm.generate, call_source=CALL_SOURCE)


@router.post("/explain")
async def explain(req: ExplainRequest):
    """Wrap ``userInput`` in the explanation prompt and stream the result.

    Same frame protocol as ``/api/stream-chat``.  A blank ``userInput`` or
    ``userid`` answers 400 naming that field.
    """
    try:
        req.validate_required()
    except InvalidRequestError as e:
        return reject(CALL_SOURCE, e)

    gen_request = req.to_generation_request(context=CALL_SOURCE)
    return relay_response(_relay, gen_request)
