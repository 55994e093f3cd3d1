"""API request models and the internal generation request."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field

from config.prompts.explanation import create_explanation_prompt
from errors.exceptions import InvalidRequestError
from models.base import CamelModel


class GenerationOptions(BaseModel):
    """Recognized generation options for one relay invocation."""

    model: str | None = None
    streaming: bool = True  # output mode: stream increments or only the final text
    timeout_seconds: float | None = Field(default=None, gt=0)
    context: str | None = None  # call-source label forwarded upstream
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)

    def llm_overrides(self) -> dict:
        """Per-call LiteLLM overrides carried by the request."""
        kw: dict = {}
        if self.temperature is not None:
            kw["temperature"] = self.temperature
        if self.max_tokens is not None:
            kw["max_tokens"] = self.max_tokens
        return kw


class GenerationRequest(BaseModel):
    """Transient, request-scoped input to the streaming relay."""

    prompt_text: str = ""
    caller_id: str = ""
    options: GenerationOptions = Field(default_factory=GenerationOptions)
    request_id: str | None = None

    def validate_required(self) -> None:
        """Reject the request before any channel is opened.

        Raises:
            InvalidRequestError: ``promptText`` or ``callerId`` is empty.
        """
        if not self.prompt_text or not self.prompt_text.strip():
            raise InvalidRequestError("promptText")
        if not self.caller_id or not self.caller_id.strip():
            raise InvalidRequestError("callerId")


class RequestIdPayload(CamelModel):
    """Client-supplied request tracking block (``__requestId``)."""

    request_id: str | None = None
    user_id: str | None = None
    session_id: str | None = None


class _GenerationOptionsBody(CamelModel):
    model: str | None = None
    streaming: bool = True
    timeout_seconds: float | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)
    request_tracking: RequestIdPayload | None = Field(
        default=None,
        validation_alias=AliasChoices("__requestId", "requestTracking"),
    )

    def _options(self, context: str) -> GenerationOptions:
        return GenerationOptions(
            model=self.model,
            streaming=self.streaming,
            timeout_seconds=self.timeout_seconds,
            context=context,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def _request_id(self) -> str | None:
        if self.request_tracking is None:
            return None
        return self.request_tracking.request_id


class StreamChatRequest(_GenerationOptionsBody):
    """POST /api/stream-chat — request body.

    Required fields are optional at the schema level so an empty or missing
    value yields the relay's 400 instead of a 422 validation error.
    """

    prompt: str | None = Field(
        default=None, validation_alias=AliasChoices("prompt", "promptText")
    )
    userid: str | None = Field(
        default=None, validation_alias=AliasChoices("userid", "callerId")
    )

    def to_generation_request(self, context: str = "stream-chat-api") -> GenerationRequest:
        return GenerationRequest(
            prompt_text=self.prompt or "",
            caller_id=self.userid or "",
            options=self._options(context),
            request_id=self._request_id(),
        )


class ExplainRequest(_GenerationOptionsBody):
    """POST /api/explain — request body."""

    user_input: str | None = None
    userid: str | None = Field(
        default=None, validation_alias=AliasChoices("userid", "callerId")
    )
    additional_rules: list[str] = Field(default_factory=list)

    def validate_required(self) -> None:
        """Reject a blank ``userInput`` or ``userid`` by their wire names."""
        if not self.user_input or not self.user_input.strip():
            raise InvalidRequestError("userInput")
        if not self.userid or not self.userid.strip():
            raise InvalidRequestError("userid")

    def to_generation_request(self, context: str = "explanation-api") -> GenerationRequest:
        user_input = (self.user_input or "").strip()
        # Blank input must stay blank so validation rejects it.
        prompt = (
            create_explanation_prompt(user_input, self.additional_rules)
            if user_input
            else ""
        )
        return GenerationRequest(
            prompt_text=prompt,
            caller_id=self.userid or "",
            options=self._options(context),
            request_id=self._request_id(),
        )
