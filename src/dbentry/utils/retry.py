# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/utils/retry.py

from __future__ import annotations

import functools
import itertools
import time
from dataclasses import dataclass
from typing import Callable, Optional


class RetryError(RuntimeError):
    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-interval retry policy.

    attempts: number of calls before giving up, None retries forever
    interval: seconds slept between two calls
    """

    interval: float
    attempts: Optional[int] = None

    @property
    def bounded(self) -> bool:
        return self.attempts is not None


def retry(
    *,
    policy: RetryPolicy,
    retry_on: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Retry decorator for idempotent operations.

    policy: attempt budget and interval
    retry_on: exception types to retry
    on_retry: callback(attempt, exception)
    sleep: clock used between attempts, injectable for tests
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            last_exc = None
            counter = (
                range(1, policy.attempts + 1)
                if policy.bounded
                else itertools.count(1)
            )
            for attempt in counter:
                try:
                    return fn(*args, **kwargs)
                except retry_on as exc:
                    last_exc = exc
                    if on_retry:
                        on_retry(attempt, exc)
                    if attempt == policy.attempts:
                        break
                    sleep(policy.interval)
            raise RetryError(
                f"{fn.__name__} failed after {policy.attempts} attempts",
                attempts=policy.attempts or 0,
            ) from last_exc
        return wrapper
    return decorator
