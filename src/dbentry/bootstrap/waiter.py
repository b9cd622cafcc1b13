# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/bootstrap/waiter.py

from __future__ import annotations

import logging
import time
from typing import Callable

from dbentry.errors import StartupTimeoutError
from dbentry.utils.retry import RetryError, RetryPolicy, retry

log = logging.getLogger("dbentry")


class _NotReady(Exception):
    pass


class ConnectionWaiter:
    """
    Polls a freshly started server with a trivial query until it answers
    or the attempt budget runs out.
    """

    def __init__(
        self,
        policy: RetryPolicy = RetryPolicy(interval=1.0, attempts=30),
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not policy.bounded:
            raise ValueError("ConnectionWaiter needs a bounded retry policy")
        self.policy = policy
        self.sleep = sleep

    def wait(self, probe: Callable[[], bool]) -> int:
        """Returns the number of probes it took."""
        attempts = 0

        def _log_retry(attempt: int, exc: Exception) -> None:
            log.debug(f"mysqld not accepting connections yet ({attempt}/{self.policy.attempts})")

        @retry(policy=self.policy, retry_on=(_NotReady,), on_retry=_log_retry, sleep=self.sleep)
        def _probe() -> None:
            nonlocal attempts
            attempts += 1
            if not probe():
                raise _NotReady()

        log.info("Waiting for bootstrap mysqld to start...")
        try:
            _probe()
        except RetryError as exc:
            raise StartupTimeoutError(
                f"MySQL init process failed: no connection after {exc.attempts} attempts"
            ) from exc
        return attempts
