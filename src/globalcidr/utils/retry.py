# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

import time
import functools
from typing import Callable

from ..errors import GlobalCIDRError, RegistryConflictError, StoreError

DEFAULT_RETRIES = 5


class RetryError(GlobalCIDRError):
    """All attempts failed with a retryable error. Transient; callers may re-invoke."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


def is_conflict(exc: Exception) -> bool:
    return isinstance(exc, RegistryConflictError)


def retry(
    *,
    retries: int,
    delay: float = 0,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    retry_if: Callable[[Exception], bool] | None = None,
    on_retry: Callable[[int, Exception], None] | None = None,
    what: str | None = None,
):
    """
    Retry decorator for operations that are safe to re-run as a whole.

    retries: maximum number of attempts
    delay: seconds between attempts (0 = retry immediately)
    retry_on: exception types to retry; anything else propagates at once
    retry_if: optional predicate to narrow retry_on further
    on_retry: callback(attempt, exception), called before each new attempt
    what: description used in the final RetryError (defaults to the function name)
    """
    if retries < 1:
        raise ValueError("retries must be >= 1")

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            last_exc = None
            for attempt in range(1, retries + 1):
                try:
                    return fn(*args, **kwargs)
                except retry_on as exc:
                    if retry_if is not None and not retry_if(exc):
                        raise
                    last_exc = exc
                    if attempt == retries:
                        break
                    if on_retry:
                        on_retry(attempt, exc)
                    if delay:
                        time.sleep(delay)
            raise RetryError(
                f"{what or fn.__name__} failed after {retries} attempts: {last_exc}", retries
            ) from last_exc
        return wrapper
    return decorator


def retry_on_conflict(
    fn: Callable,
    *,
    retries: int = DEFAULT_RETRIES,
    on_retry: Callable[[int, Exception], None] | None = None,
    what: str | None = None,
):
    """Run *fn* until it stops raising a store conflict, at most *retries* times."""
    return retry(
        retries=retries,
        retry_on=(StoreError,),
        retry_if=is_conflict,
        on_retry=on_retry,
        what=what,
    )(fn)()
