"""Structured exceptions raised by the retrying transport.

Errors raised by the wrapped transport are never wrapped: when the last
attempt fails, the caller sees that exact exception. The classes below are
the only new error identities the retry loop introduces.
"""

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from http_retry.transport.cancellation import CancellationToken


class RetryTransportError(httpx.TransportError):
    """Base exception for failures introduced by the retry loop itself.

    Subclasses ``httpx.TransportError`` so callers already handling httpx
    transport failures also handle these.
    """

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request)


class DrainError(RetryTransportError):
    """Raised when a response about to be discarded cannot be read to completion.

    The connection behind that response cannot go back to the pool, so the
    call is aborted instead of retried.
    """

    pass


class RewindError(RetryTransportError):
    """Raised when a fresh request body cannot be obtained for a retry."""

    pass


class RetryCancelledError(RetryTransportError):
    """Raised when the request's cancellation token fires.

    Attributes:
        reason: The token's reason, e.g. ``"cancelled"`` or ``"deadline exceeded"``.
    """

    def __init__(self, message: str, *, reason: str, request: httpx.Request | None = None):
        super().__init__(message, request=request)
        self.reason = reason

    @classmethod
    def from_token(
        cls, token: "CancellationToken", request: httpx.Request | None = None
    ) -> "RetryCancelledError":
        reason = token.reason or "cancelled"
        return cls(f"Request cancelled: {reason}", reason=reason, request=request)
