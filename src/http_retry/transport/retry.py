"""Retrying transports for resilient HTTP clients.

This module provides transports that wrap another httpx transport and re-issue
a request when the outcome looks transient:

- RetryTransport: for ``httpx.Client``
- AsyncRetryTransport: for ``httpx.AsyncClient``

The transports hold no policy of their own. Whether an attempt is retried is
decided by a retry-decision callable, and how long to wait in between by a
backoff callable (see ``decision`` and ``backoff``).

## Per-call behaviour

| Step | What happens |
|------|--------------|
| Send | The request (a fresh copy, body rewound if needed) goes to the wrapped transport |
| Classify | ``should_retry(response, error)``; False returns the outcome as-is |
| Budget | After ``max_retries + 1`` sends the last outcome is returned as-is |
| Wait | ``backoff(attempt)`` seconds, cut short by the request's cancellation token |
| Drain | The discarded response is read to the end and closed so its connection can be reused |

Errors raised by the wrapped transport reach the caller unchanged. Only
``RewindError``, ``DrainError`` and ``RetryCancelledError`` are raised by the
retry loop itself.

## Example

```python
import httpx

from http_retry.transport import (
    RetryTransport,
    default_should_retry,
    exponential_backoff_full_jitter,
)

retry_transport = RetryTransport(
    httpx.HTTPTransport(),
    max_retries=3,
    should_retry=default_should_retry,
    backoff=exponential_backoff_full_jitter(1.0, 10.0),
)

with httpx.Client(transport=retry_transport) as client:
    response = client.post("https://api.example.com/items", json={"name": "Nori"})
```
"""

import asyncio
import logging
import time

import httpx

from http_retry.errors.exceptions import DrainError, RetryCancelledError
from http_retry.transport.backoff import Backoff
from http_retry.transport.body import RewindableStream, arewind, rewind, wrap_body
from http_retry.transport.cancellation import get_cancel_token
from http_retry.transport.decision import RetryDecision

logger = logging.getLogger(__name__)


def _copy_request(request: httpx.Request, body: RewindableStream | None) -> httpx.Request:
    """Shallow copy of ``request`` carrying ``body``.

    Headers are copied, extensions are shared.
    """
    headers = httpx.Headers(request.headers)
    if body is not None and body.length is not None and "Content-Length" in headers:
        headers["Content-Length"] = str(body.length)
    return httpx.Request(
        request.method,
        request.url,
        headers=headers,
        stream=body if body is not None else request.stream,
        extensions=request.extensions,
    )


def _describe(response: httpx.Response | None, error: BaseException | None) -> str:
    if error is not None:
        return f"{type(error).__name__}: {error}"
    if response is None:
        return "no response"
    return f"status {response.status_code}"


class _RetryPolicy:
    """Settings shared by the sync and async transports."""

    def __init__(
        self,
        *,
        max_retries: int,
        should_retry: RetryDecision,
        backoff: Backoff,
    ) -> None:
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.should_retry = should_retry
        self.backoff = backoff

    def _log_retry(
        self,
        request: httpx.Request,
        response: httpx.Response | None,
        error: BaseException | None,
        attempt: int,
        delay: float,
    ) -> None:
        logger.warning(
            f"Request {request.method} {request.url} failed with {_describe(response, error)}, "
            f"retrying in {delay:.3f}s (attempt {attempt}/{self.max_retries})"
        )

    def _log_exhausted(
        self,
        request: httpx.Request,
        response: httpx.Response | None,
        error: BaseException | None,
        attempt: int,
    ) -> None:
        logger.warning(
            f"Request {request.method} {request.url} failed with {_describe(response, error)} "
            f"after {attempt} attempts, giving up"
        )


class RetryTransport(_RetryPolicy, httpx.BaseTransport):
    """Transport re-issuing requests through a wrapped transport on transient failure.

    Args:
        wrapped_transport: The transport performing the actual I/O.
            Defaults to a new ``httpx.HTTPTransport()``.
        max_retries: Number of additional attempts after the first one.
            At most ``max_retries + 1`` requests are sent.
        should_retry: Retry decision, called once per attempt with
            ``(response, error)``.
        backoff: Seconds to wait after attempt ``k`` before attempt ``k + 1``.

    Raises:
        ValueError: If ``max_retries`` is negative.
    """

    def __init__(
        self,
        wrapped_transport: httpx.BaseTransport | None = None,
        *,
        max_retries: int,
        should_retry: RetryDecision,
        backoff: Backoff,
    ) -> None:
        super().__init__(max_retries=max_retries, should_retry=should_retry, backoff=backoff)
        self._wrapped_transport = wrapped_transport if wrapped_transport is not None else httpx.HTTPTransport()

    def __enter__(self) -> "RetryTransport":
        """Enter context, delegating to wrapped transport."""
        self._wrapped_transport.__enter__()
        return self

    def __exit__(self, exc_type=None, exc_val=None, exc_tb=None) -> None:
        """Exit context, delegating to wrapped transport."""
        self._wrapped_transport.__exit__(exc_type, exc_val, exc_tb)

    def close(self) -> None:
        self._wrapped_transport.close()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying per the configured strategies.

        Args:
            request: The HTTP request to send. It is never mutated.

        Returns:
            The response of the last attempt, unread.

        Raises:
            Exception: The last attempt's error, unchanged.
            RewindError: If the body could not be rewound for a retry.
            DrainError: If a discarded response could not be drained.
            RetryCancelledError: If the cancellation token fired.
        """
        token = get_cancel_token(request)
        body = wrap_body(request)
        attempt = 0

        while True:
            attempt += 1
            if token is not None:
                token.raise_if_cancelled(request)

            body = rewind(body, request)
            attempt_request = _copy_request(request, body)

            response: httpx.Response | None = None
            error: Exception | None = None
            logger.debug(f"Request {request.method} {request.url} start (attempt {attempt})")
            try:
                response = self._wrapped_transport.handle_request(attempt_request)
            except Exception as e:
                error = e
            logger.debug(f"Request {request.method} {request.url} end (attempt {attempt})")

            if not self.should_retry(response, error):
                return _outcome(response, error)

            if attempt > self.max_retries:
                self._log_exhausted(request, response, error, attempt)
                return _outcome(response, error)

            delay = self.backoff(attempt)
            self._log_retry(request, response, error, attempt, delay)

            if self._wait(token, delay):
                if response is not None:
                    response.close()
                raise RetryCancelledError.from_token(token, request) from error

            if response is not None:
                _drain(response, request)

    @staticmethod
    def _wait(token, delay: float) -> bool:
        """Wait ``delay`` seconds; return True if cancelled instead."""
        if token is None:
            if delay > 0:
                time.sleep(delay)
            return False
        if delay <= 0:
            return token.cancelled
        return token.wait(delay)


class AsyncRetryTransport(_RetryPolicy, httpx.AsyncBaseTransport):
    """Asyncio counterpart of ``RetryTransport``.

    Args:
        wrapped_transport: The transport performing the actual I/O.
            Defaults to a new ``httpx.AsyncHTTPTransport()``.
        max_retries: Number of additional attempts after the first one.
        should_retry: Retry decision, called once per attempt.
        backoff: Seconds to wait after attempt ``k`` before attempt ``k + 1``.

    Example:
        ```python
        transport = AsyncRetryTransport(
            httpx.AsyncHTTPTransport(),
            max_retries=3,
            should_retry=default_should_retry,
            backoff=exponential_backoff_full_jitter(1.0, 10.0),
        )

        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get("https://api.example.com")
        ```
    """

    def __init__(
        self,
        wrapped_transport: httpx.AsyncBaseTransport | None = None,
        *,
        max_retries: int,
        should_retry: RetryDecision,
        backoff: Backoff,
    ) -> None:
        super().__init__(max_retries=max_retries, should_retry=should_retry, backoff=backoff)
        self._wrapped_transport = (
            wrapped_transport if wrapped_transport is not None else httpx.AsyncHTTPTransport()
        )

    async def __aenter__(self) -> "AsyncRetryTransport":
        """Enter async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aenter__()
        return self

    async def __aexit__(self, exc_type=None, exc_val=None, exc_tb=None) -> None:
        """Exit async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._wrapped_transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send ``request``, retrying per the configured strategies.

        Same contract as ``RetryTransport.handle_request``. Cancelling the
        awaiting task stops the call at once, during a send or a wait.
        """
        token = get_cancel_token(request)
        body = wrap_body(request)
        attempt = 0

        while True:
            attempt += 1
            if token is not None:
                token.raise_if_cancelled(request)

            body = await arewind(body, request)
            attempt_request = _copy_request(request, body)

            response: httpx.Response | None = None
            error: Exception | None = None
            logger.debug(f"Request {request.method} {request.url} start (attempt {attempt})")
            try:
                response = await self._wrapped_transport.handle_async_request(attempt_request)
            except Exception as e:
                error = e
            logger.debug(f"Request {request.method} {request.url} end (attempt {attempt})")

            if not self.should_retry(response, error):
                return _outcome(response, error)

            if attempt > self.max_retries:
                self._log_exhausted(request, response, error, attempt)
                return _outcome(response, error)

            delay = self.backoff(attempt)
            self._log_retry(request, response, error, attempt, delay)

            if await self._wait(token, delay):
                if response is not None:
                    await response.aclose()
                raise RetryCancelledError.from_token(token, request) from error

            if response is not None:
                await _adrain(response, request)

    @staticmethod
    async def _wait(token, delay: float) -> bool:
        """Wait ``delay`` seconds; return True if cancelled instead."""
        if token is None:
            if delay > 0:
                await asyncio.sleep(delay)
            return False
        if delay <= 0:
            return token.cancelled
        return await token.wait_async(delay)


def _outcome(response: httpx.Response | None, error: Exception | None) -> httpx.Response:
    if error is not None:
        raise error
    if response is None:
        raise TypeError("Wrapped transport returned no response")
    return response


def _drain(response: httpx.Response, request: httpx.Request) -> None:
    """Read ``response`` to the end and close it so its connection can be reused."""
    try:
        response.read()
        response.close()
    except Exception as e:
        raise DrainError(f"Failed to drain response body: {e}", request=request) from e


async def _adrain(response: httpx.Response, request: httpx.Request) -> None:
    try:
        await response.aread()
        await response.aclose()
    except Exception as e:
        raise DrainError(f"Failed to drain response body: {e}", request=request) from e
