"""Testing utilities for retrying transports.

This module provides scripted inner transports and instrumented streams to
test retry policies without a network.

Example:
    ```python
    from http_retry.testing import ScriptedTransport
    from http_retry.transport import RetryTransport, constant_backoff, default_should_retry


    def test_recovers_after_server_error():
        inner = ScriptedTransport([500, 200])
        transport = RetryTransport(
            inner, max_retries=1, should_retry=default_should_retry, backoff=constant_backoff(0)
        )
        with httpx.Client(transport=transport) as client:
            assert client.get("https://api.example.com").status_code == 200
        assert inner.responses[0].stream.closes == 1
    ```
"""

from collections.abc import AsyncIterator, Iterator, Sequence

import httpx

Outcome = int | httpx.Response | Exception


class TrackingStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Response body counting how often it was iterated and closed."""

    def __init__(self, content: bytes = b"", fail_with: Exception | None = None) -> None:
        self.content = content
        self.fail_with = fail_with
        self.reads = 0
        self.closes = 0

    def __iter__(self) -> Iterator[bytes]:
        self.reads += 1
        if self.fail_with is not None:
            raise self.fail_with
        yield self.content

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.reads += 1
        if self.fail_with is not None:
            raise self.fail_with
        yield self.content

    def close(self) -> None:
        self.closes += 1

    async def aclose(self) -> None:
        self.closes += 1


class ScriptedTransport(httpx.MockTransport):
    """Mock transport answering each request with the next scripted outcome.

    An outcome is a status code (answered with a ``TrackingStream`` body), a
    ready-made response, or an exception to raise. Once the script runs out,
    the last outcome repeats.

    Attributes:
        requests: Every request received, in order.
        bodies: The body bytes of every request received.
        responses: Every response handed out, in order.
    """

    def __init__(self, outcomes: Sequence[Outcome]) -> None:
        if not outcomes:
            raise ValueError("ScriptedTransport needs at least one outcome")
        super().__init__(self._handle)
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self.responses: list[httpx.Response] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        outcome = self.outcomes[min(len(self.requests), len(self.outcomes) - 1)]
        self.requests.append(request)
        self.bodies.append(request.content)

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            outcome = httpx.Response(outcome, stream=TrackingStream(f"status {outcome}".encode()))
        self.responses.append(outcome)
        return outcome


__all__ = ["Outcome", "ScriptedTransport", "TrackingStream"]
