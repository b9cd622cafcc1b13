# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/replication/discovery.py

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import requests

from dbentry.config.models import DiscoverySettings
from dbentry.errors import DiscoveryUnavailable
from dbentry.observers.dispatcher import EventBus
from dbentry.observers.events import PrimaryDiscovered
from dbentry.utils.retry import retry

log = logging.getLogger("dbentry")

# what jq -r prints for a JSON null
_NONE_SENTINELS = {"", "null"}


class PrimaryDiscovery:
    """
    Finds the primary through the Consul catalog.

    ``locate()`` blocks until a primary is registered; there is no timeout
    because a replica cannot do anything useful without one.
    """

    def __init__(
        self,
        settings: Optional[DiscoverySettings] = None,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[dict] = None,
    ):
        self.settings = settings or DiscoverySettings()
        self.session = session or requests.Session()
        self.sleep = sleep
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or {}

    @property
    def catalog_url(self) -> str:
        return f"{self.settings.url.rstrip('/')}/v1/catalog/service/{self.settings.service}"

    def lookup(self) -> str:
        """Address of the first registered instance, or DiscoveryUnavailable."""
        url = self.catalog_url
        try:
            r = self.session.get(url, timeout=self.settings.request_timeout)
            r.raise_for_status()
            records = r.json()
        except (requests.RequestException, ValueError) as exc:
            raise DiscoveryUnavailable(f"{url}: {exc}") from exc

        if not isinstance(records, list) or not records or not isinstance(records[0], dict):
            raise DiscoveryUnavailable(f"no {self.settings.service} instances registered")

        address = records[0].get("ServiceAddress")
        if not isinstance(address, str) or address.strip() in _NONE_SENTINELS:
            raise DiscoveryUnavailable(f"{self.settings.service} has no service address yet")
        return address

    def locate(self) -> str:
        attempts = 0

        def _log_retry(attempt: int, exc: Exception) -> None:
            if attempt == 1:
                log.info(f"Waiting for a {self.settings.service} primary in {self.settings.url}...")
            log.debug(f"primary lookup attempt {attempt}: {exc}")

        @retry(
            policy=self.settings.policy(),
            retry_on=(DiscoveryUnavailable,),
            on_retry=_log_retry,
            sleep=self.sleep,
        )
        def _lookup() -> str:
            nonlocal attempts
            attempts += 1
            return self.lookup()

        address = _lookup()
        log.info(f"Found primary at {address}")
        if self.run_ctx:
            self.bus.emit(PrimaryDiscovered(address=address, attempts=attempts, **self.run_ctx))
        return address
