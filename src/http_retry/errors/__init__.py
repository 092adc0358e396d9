"""Error taxonomy for the retrying transport."""

from http_retry.errors.exceptions import (
    DrainError,
    RetryCancelledError,
    RetryTransportError,
    RewindError,
)

__all__ = [
    "DrainError",
    "RetryCancelledError",
    "RetryTransportError",
    "RewindError",
]
