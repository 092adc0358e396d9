"""Transport layer components for composable HTTP middleware.

This module provides a retrying transport that wraps httpx's transports,
together with the strategies and helpers it is composed from.

Modules:
    retry: RetryTransport and AsyncRetryTransport
    decision: Retry-decision strategies
    backoff: Backoff strategies
    body: Rewindable request bodies and body factories
    cancellation: Request-scoped cancellation tokens

Example:
    ```python
    from http_retry.transport import (
        AsyncRetryTransport,
        default_should_retry,
        exponential_backoff_full_jitter,
    )

    transport = AsyncRetryTransport(
        max_retries=3,
        should_retry=default_should_retry,
        backoff=exponential_backoff_full_jitter(1.0, 10.0),
    )
    ```
"""

from http_retry.transport.backoff import (
    Backoff,
    constant_backoff,
    exponential_backoff,
    exponential_backoff_full_jitter,
)
from http_retry.transport.body import (
    BODY_FACTORY_EXTENSION,
    BodyFactory,
    RewindableStream,
    arewind,
    attach_body_factory,
    rewind,
)
from http_retry.transport.cancellation import (
    CANCEL_TOKEN_EXTENSION,
    CancellationToken,
    attach_cancel_token,
    get_cancel_token,
)
from http_retry.transport.decision import RetryDecision, default_should_retry, retry_on_status
from http_retry.transport.retry import AsyncRetryTransport, RetryTransport

__all__ = [
    "BODY_FACTORY_EXTENSION",
    "CANCEL_TOKEN_EXTENSION",
    "AsyncRetryTransport",
    "Backoff",
    "BodyFactory",
    "CancellationToken",
    "RetryDecision",
    "RetryTransport",
    "RewindableStream",
    "arewind",
    "attach_body_factory",
    "attach_cancel_token",
    "constant_backoff",
    "default_should_retry",
    "exponential_backoff",
    "exponential_backoff_full_jitter",
    "get_cancel_token",
    "retry_on_status",
    "rewind",
]
