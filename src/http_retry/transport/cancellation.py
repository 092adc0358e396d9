"""Request-scoped cancellation for the retrying transport.

A ``CancellationToken`` travels with a request in ``request.extensions`` and
governs the whole retrying call: once it fires, no further attempt is sent and
any backoff wait in progress ends immediately.

A token fires either when ``cancel()`` is called (from any thread) or when its
optional deadline passes. Blocking code waits with ``wait()``; asyncio code
awaits ``wait_async()``.

Example:
    ```python
    import httpx

    from http_retry.transport import CancellationToken, attach_cancel_token

    token = CancellationToken(timeout=30.0)
    request = client.build_request("POST", "https://api.example.com/items", json=payload)
    attach_cancel_token(request, token)
    response = client.send(request)

    # Elsewhere, e.g. on shutdown
    token.cancel()
    ```
"""

import asyncio
import threading
import time

import httpx

from http_retry.errors.exceptions import RetryCancelledError

CANCEL_TOKEN_EXTENSION = "cancel_token"

CANCELLED = "cancelled"
DEADLINE_EXCEEDED = "deadline exceeded"


class CancellationToken:
    """Thread-safe cancellation signal with an optional deadline.

    Args:
        timeout: Seconds from now after which the token fires on its own
            with reason ``"deadline exceeded"``. None means no deadline.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: str | None = None
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future]] = []
        self._deadline = None if timeout is None else time.monotonic() + timeout

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self.cancel(DEADLINE_EXCEEDED)
            return True
        return False

    @property
    def reason(self) -> str | None:
        return self._reason

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def cancel(self, reason: str = CANCELLED) -> None:
        """Fire the token. Only the first call sets the reason."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            waiters, self._waiters = self._waiters, []

        for loop, future in waiters:
            loop.call_soon_threadsafe(_resolve, future)

    def raise_if_cancelled(self, request: httpx.Request | None = None) -> None:
        if self.cancelled:
            raise RetryCancelledError.from_token(self, request)

    def _bounded(self, timeout: float | None) -> tuple[float | None, bool]:
        """Clamp ``timeout`` to the deadline; also report whether the deadline is the bound."""
        remaining = self.remaining()
        if remaining is None:
            return timeout, False
        if timeout is None or remaining <= timeout:
            return remaining, True
        return timeout, False

    def _finish_wait(self, hits_deadline: bool) -> bool:
        # Timers may wake marginally early; a wait bounded by the deadline has reached it.
        if hits_deadline and not self._event.is_set():
            self.cancel(DEADLINE_EXCEEDED)
        return self.cancelled

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the token fires or ``timeout`` seconds elapse.

        Returns:
            True if the token fired, False if the timeout elapsed first.
        """
        if self.cancelled:
            return True
        bounded, hits_deadline = self._bounded(timeout)
        self._event.wait(bounded)
        return self._finish_wait(hits_deadline)

    async def wait_async(self, timeout: float | None = None) -> bool:
        """Asyncio counterpart of ``wait()``."""
        if self.cancelled:
            return True

        loop = asyncio.get_running_loop()
        future = loop.create_future()
        entry = (loop, future)
        with self._lock:
            if self._event.is_set():
                return True
            self._waiters.append(entry)

        bounded, hits_deadline = self._bounded(timeout)
        try:
            await asyncio.wait_for(future, bounded)
        except TimeoutError:
            pass
        finally:
            with self._lock:
                if entry in self._waiters:
                    self._waiters.remove(entry)

        return self._finish_wait(hits_deadline)


def _resolve(future: asyncio.Future) -> None:
    if not future.done():
        future.set_result(None)


def get_cancel_token(request: httpx.Request) -> CancellationToken | None:
    return request.extensions.get(CANCEL_TOKEN_EXTENSION)


def attach_cancel_token(request: httpx.Request, token: CancellationToken) -> httpx.Request:
    """Attach ``token`` to ``request`` and return the request."""
    request.extensions[CANCEL_TOKEN_EXTENSION] = token
    return request
