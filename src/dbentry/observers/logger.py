# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/observers/logger.py

from __future__ import annotations
import logging
from .events import BaseEvent
from .interface import public_fields

# identical for every event of a run
_CONTEXT_FIELDS = ("ts", "run_id", "operation", "host")


class LoggerObserver:
    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        fields = public_fields(event)
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in fields.items() if k not in _CONTEXT_FIELDS)

        self.logger.debug(f"[EVENT] {etype}: {msg}")
