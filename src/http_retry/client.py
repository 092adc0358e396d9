"""Factories for httpx clients with retrying transports.

Example:
    ```python
    from http_retry.client import create_client

    with create_client() as client:
        response = client.post("https://httpbin.org/status/200,500", json={"name": "Nori"})
    ```
"""

from typing import Any

import httpx

from http_retry.config.settings import RetrySettings
from http_retry.transport.backoff import Backoff, exponential_backoff_full_jitter
from http_retry.transport.cancellation import CancellationToken, attach_cancel_token, get_cancel_token
from http_retry.transport.decision import RetryDecision, default_should_retry
from http_retry.transport.retry import AsyncRetryTransport, RetryTransport


def _deadline_hook(timeout: float):
    def install_deadline(request: httpx.Request) -> None:
        if get_cancel_token(request) is None:
            attach_cancel_token(request, CancellationToken(timeout=timeout))

    return install_deadline


def _async_deadline_hook(timeout: float):
    install = _deadline_hook(timeout)

    async def install_deadline(request: httpx.Request) -> None:
        install(request)

    return install_deadline


def _client_options(settings: RetrySettings, client_kwargs: dict[str, Any], hook) -> dict[str, Any]:
    options = dict(client_kwargs)
    options.setdefault("timeout", httpx.Timeout(settings.timeout))
    if settings.timeout is not None:
        event_hooks = {key: list(hooks) for key, hooks in options.pop("event_hooks", {}).items()}
        event_hooks.setdefault("request", []).insert(0, hook(settings.timeout))
        options["event_hooks"] = event_hooks
    return options


def create_client(
    settings: RetrySettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    should_retry: RetryDecision = default_should_retry,
    backoff: Backoff | None = None,
    **client_kwargs: Any,
) -> httpx.Client:
    """Create an ``httpx.Client`` whose requests are retried.

    Each request gets a deadline token covering all of its attempts and
    waits, unless it already carries a cancellation token.

    Args:
        settings: Retry settings. Defaults to ``RetrySettings.from_env()``.
        transport: Inner transport. Defaults to ``httpx.HTTPTransport()``.
        should_retry: Retry decision.
        backoff: Backoff. Defaults to full-jitter exponential backoff built
            from ``settings.backoff_base`` and ``settings.backoff_cap``.
        **client_kwargs: Passed through to ``httpx.Client``.
    """
    settings = settings or RetrySettings.from_env()
    retry_transport = RetryTransport(
        transport,
        max_retries=settings.max_retries,
        should_retry=should_retry,
        backoff=backoff or exponential_backoff_full_jitter(settings.backoff_base, settings.backoff_cap),
    )
    return httpx.Client(transport=retry_transport, **_client_options(settings, client_kwargs, _deadline_hook))


def create_async_client(
    settings: RetrySettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    should_retry: RetryDecision = default_should_retry,
    backoff: Backoff | None = None,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """Create an ``httpx.AsyncClient`` whose requests are retried.

    Same arguments as ``create_client``.
    """
    settings = settings or RetrySettings.from_env()
    retry_transport = AsyncRetryTransport(
        transport,
        max_retries=settings.max_retries,
        should_retry=should_retry,
        backoff=backoff or exponential_backoff_full_jitter(settings.backoff_base, settings.backoff_cap),
    )
    return httpx.AsyncClient(
        transport=retry_transport, **_client_options(settings, client_kwargs, _async_deadline_hook)
    )
