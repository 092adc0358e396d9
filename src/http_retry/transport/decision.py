"""Retry-decision strategies.

A retry decision is any callable ``(response, error) -> bool`` telling the
transport whether a completed attempt warrants another try. Exactly one of
``response`` and ``error`` is set. Implementations must be pure, safe to call
concurrently and must never read the response body.
"""

from collections.abc import Callable, Iterable

import httpx

RetryDecision = Callable[[httpx.Response | None, BaseException | None], bool]


def default_should_retry(response: httpx.Response | None, error: BaseException | None) -> bool:
    """Retry on any error and on 5xx responses; everything else is terminal."""
    if error is not None:
        return True
    return response is not None and response.status_code >= 500


def retry_on_status(status_codes: Iterable[int], *, retry_errors: bool = True) -> RetryDecision:
    """Build a decision retrying only the given status codes.

    Args:
        status_codes: Response status codes worth another attempt,
            e.g. ``{429, 502, 503, 504}``.
        retry_errors: Whether transport errors are retried as well.

    Example:
        ```python
        should_retry = retry_on_status({429, 502, 503, 504})
        ```
    """
    codes = frozenset(status_codes)

    def should_retry(response: httpx.Response | None, error: BaseException | None) -> bool:
        if error is not None:
            return retry_errors
        return response is not None and response.status_code in codes

    return should_retry
