"""Backoff strategies.

A backoff is any callable ``(attempt) -> seconds`` where ``attempt`` is the
1-based index of the attempt that just failed. A result of zero or less means
"retry immediately".
"""

import logging
import random
from collections.abc import Callable

logger = logging.getLogger(__name__)

Backoff = Callable[[int], float]


def exponential_backoff_full_jitter(base: float, cap: float, rng: random.Random | None = None) -> Backoff:
    """Exponential backoff with full jitter.

    The wait is drawn uniformly from ``[0, min(base * 2**attempt, cap))``.
    Randomising over the whole interval spreads out clients that failed at
    the same moment.

    Args:
        base: Base delay in seconds.
        cap: Upper bound of the ceiling in seconds.
        rng: Random source. Defaults to the module-level generator, which is
            safe to share between threads.

    Example:
        ```python
        backoff = exponential_backoff_full_jitter(1.0, 10.0)
        backoff(1)  # somewhere in [0, 2)
        backoff(5)  # somewhere in [0, 10)
        ```
    """
    source = rng or random

    def backoff(attempt: int) -> float:
        ceiling = min(base * (2**attempt), cap)
        if ceiling <= 0:
            return 0.0
        wait = source.uniform(0, ceiling)
        logger.debug(f"Backoff for attempt {attempt}: ceiling={ceiling:.3f}s wait={wait:.3f}s")
        return wait

    return backoff


def exponential_backoff(base: float, cap: float | None = None) -> Backoff:
    """Deterministic ``base * 2**attempt``, optionally capped."""

    def backoff(attempt: int) -> float:
        delay = base * (2**attempt)
        if cap is not None:
            delay = min(delay, cap)
        return delay

    return backoff


def constant_backoff(delay: float) -> Backoff:
    """Always wait ``delay`` seconds."""
    return lambda attempt: delay
