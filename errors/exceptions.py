"""Domain-specific exceptions for the Explain Anything relay.

These exceptions let the API layer tell request validation failures (which
never reach the streaming path) apart from upstream generation failures
(which the relay converts into an in-band ``error`` frame).
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for relay errors."""


class InvalidRequestError(RelayError):
    """A required request field is missing or empty.

    Raised synchronously before any channel is opened, so the route can
    answer with HTTP 400 instead of a stream.
    """

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Missing required parameter: {field}")


class UpstreamGenerationError(RelayError):
    """The LLM provider answered, but not with usable text."""

    def __init__(self, message: str, model: str | None = None) -> None:
        self.model = model
        super().__init__(message)


class UpstreamTimeoutError(UpstreamGenerationError):
    """The upstream generation call exceeded its time budget."""

    def __init__(self, timeout_seconds: float, model: str | None = None) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Upstream generation timed out after {timeout_seconds:g}s",
            model=model,
        )
