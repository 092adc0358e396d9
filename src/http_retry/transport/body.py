"""Rewindable request bodies.

A request body is a byte stream that may only be readable once: content built
from a generator is consumed by the first attempt, and a second iteration
raises ``httpx.StreamConsumed``. Before every retry the transport therefore
*rewinds* the body:

- body untouched: reuse it as-is
- body read or closed: obtain a fresh one
- no body: nothing to do

A fresh body comes from the request's body factory when one is attached with
``attach_body_factory()``. Without a factory, the transport re-iterates the
wrapped source and buffers what it yields in memory. That is correct for
replayable sources (``content=b"..."``, ``json=...``, ``data=...``, multipart
files) but a one-shot generator replays as an empty body. Attach a factory
whenever the body cannot be iterated twice, and prefer one for large bodies
to avoid the in-memory copy.

Example:
    ```python
    class UploadBody(httpx.SyncByteStream):
        def __iter__(self):
            with open("upload.bin", "rb") as f:
                yield from iter(lambda: f.read(65536), b"")

    request = client.build_request("PUT", "https://api.example.com/blob", content=UploadBody())
    attach_body_factory(request, UploadBody)
    response = client.send(request)
    ```
"""

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Union

import httpx

from http_retry.errors.exceptions import RewindError

logger = logging.getLogger(__name__)

BODY_FACTORY_EXTENSION = "body_factory"

ByteStream = Union[httpx.SyncByteStream, httpx.AsyncByteStream]
BodyFactory = Callable[[], Union[bytes, ByteStream]]


class RewindableStream(httpx.SyncByteStream, httpx.AsyncByteStream):
    """Transparent wrapper around a request body recording read and close.

    ``did_read`` flips as soon as iteration starts, before the first chunk is
    produced, so a consumed one-shot source is detected even when it was empty.
    ``did_close`` flips on ``close()`` / ``aclose()``. Both are sticky. Calls
    are always forwarded to the wrapped stream. ``length`` is known only for
    bodies replayed from an in-memory buffer.
    """

    def __init__(self, stream: ByteStream, length: int | None = None) -> None:
        self.stream = stream
        self.length = length
        self.did_read = False
        self.did_close = False

    @property
    def touched(self) -> bool:
        return self.did_read or self.did_close

    def __iter__(self) -> Iterator[bytes]:
        self.did_read = True
        yield from self.stream  # type: ignore[misc]

    async def __aiter__(self) -> AsyncIterator[bytes]:
        self.did_read = True
        async for chunk in self.stream:  # type: ignore[union-attr]
            yield chunk

    def close(self) -> None:
        self.did_close = True
        if isinstance(self.stream, httpx.SyncByteStream):
            self.stream.close()

    async def aclose(self) -> None:
        self.did_close = True
        if isinstance(self.stream, httpx.AsyncByteStream):
            await self.stream.aclose()


def has_body(request: httpx.Request) -> bool:
    """Return False for requests without a body or with the empty body."""
    if isinstance(request.stream, httpx.ByteStream):
        try:
            return bool(request.content)
        except httpx.RequestNotRead:
            return True
    return True


def wrap_body(request: httpx.Request) -> RewindableStream | None:
    if not has_body(request):
        return None
    return RewindableStream(request.stream)


def attach_body_factory(request: httpx.Request, factory: BodyFactory) -> httpx.Request:
    """Attach a zero-argument callable producing a fresh copy of the body."""
    request.extensions[BODY_FACTORY_EXTENSION] = factory
    return request


def _from_factory(factory: BodyFactory, request: httpx.Request, stream_type: type) -> ByteStream:
    try:
        body = factory()
    except Exception as e:
        raise RewindError(f"Body factory failed: {e}", request=request) from e

    if isinstance(body, bytes):
        return httpx.ByteStream(body)
    if isinstance(body, stream_type):
        return body
    raise RewindError(
        f"Body factory returned {type(body).__name__}, expected bytes or {stream_type.__name__}",
        request=request,
    )


def _replay(buffer: bytes, request: httpx.Request) -> httpx.ByteStream:
    if not buffer:
        logger.warning(
            f"Request body of {request.method} {request.url} could not be replayed "
            "and no body factory is attached; retrying with an empty body"
        )
    return httpx.ByteStream(buffer)


def rewind(body: RewindableStream | None, request: httpx.Request) -> RewindableStream | None:
    """Return a body ready to be sent for the next attempt.

    Args:
        body: The body sent by the previous attempt, or None.
        request: The caller's original request, consulted for a body factory.

    Returns:
        ``body`` itself when untouched, otherwise a new ``RewindableStream``.

    Raises:
        RewindError: If closing the old body or producing the new one fails.
    """
    if body is None or not body.touched:
        return body

    try:
        if not body.did_close:
            body.close()

        factory = request.extensions.get(BODY_FACTORY_EXTENSION)
        if factory is not None:
            return RewindableStream(_from_factory(factory, request, httpx.SyncByteStream))

        try:
            buffer = b"".join(body.stream)  # type: ignore[arg-type]
        except httpx.StreamConsumed:
            buffer = b""
        return RewindableStream(_replay(buffer, request), length=len(buffer))
    except RewindError:
        raise
    except Exception as e:
        raise RewindError(f"Failed to rewind request body: {e}", request=request) from e


async def arewind(body: RewindableStream | None, request: httpx.Request) -> RewindableStream | None:
    """Asyncio counterpart of ``rewind()``."""
    if body is None or not body.touched:
        return body

    try:
        if not body.did_close:
            await body.aclose()

        factory = request.extensions.get(BODY_FACTORY_EXTENSION)
        if factory is not None:
            return RewindableStream(_from_factory(factory, request, httpx.AsyncByteStream))

        try:
            buffer = b"".join([chunk async for chunk in body.stream])  # type: ignore[union-attr]
        except httpx.StreamConsumed:
            buffer = b""
        return RewindableStream(_replay(buffer, request), length=len(buffer))
    except RewindError:
        raise
    except Exception as e:
        raise RewindError(f"Failed to rewind request body: {e}", request=request) from e
