"""Retry with exponential backoff for flaky provider and oracle calls."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Tuple, Type

from jobscout.log import get_logger

log = get_logger(__name__)


def _never(exc: BaseException) -> bool:
    return False


def backoff_delay(
    attempt: int,
    *,
    base_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    rand: Callable[[], float] = random.random,
) -> float:
    """Seconds to wait after failed *attempt* (1-based); jitter spreads it over [0.5x, 1.5x)."""
    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 0.5 + rand()
    return delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    give_up: Callable[[BaseException], bool] = _never,
) -> Callable:
    """Decorator: re-run the wrapped call on ``retryable`` errors.

    ``give_up`` sees every retryable exception first; returning True
    re-raises it at once. Sources use it for 4xx responses other than 429.
    The last failure is always re-raised unchanged.
    """

    def decorator(fn: Callable) -> Callable:
        label = getattr(fn, "__qualname__", repr(fn))

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if give_up(exc):
                        log.debug("%s: not retrying %s", label, exc)
                        raise
                    if attempt >= max_attempts:
                        log.error("%s failed after %d attempts: %s", label, attempt, exc)
                        raise
                    delay = backoff_delay(
                        attempt,
                        base_delay=base_delay,
                        backoff_factor=backoff_factor,
                        max_delay=max_delay,
                        jitter=jitter,
                    )
                    log.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        label, attempt, max_attempts, exc, delay,
                    )
                    time.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
