"""Custom exception hierarchy for the Explain Anything relay."""

from errors.exceptions import (
    InvalidRequestError,
    RelayError,
    UpstreamGenerationError,
    UpstreamTimeoutError,
)

__all__ = [
    "InvalidRequestError",
    "RelayError",
    "UpstreamGenerationError",
    "UpstreamTimeoutError",
]
