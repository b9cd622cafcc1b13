# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/observers/interface.py

from __future__ import annotations
from typing import Any, Dict, Protocol

from dbentry.logging.log import scrub
from .events import BaseEvent


class Observer(Protocol):
    """Receives every lifecycle event of one entrypoint run."""

    def notify(self, event: BaseEvent) -> None: ...


def public_fields(event: BaseEvent) -> Dict[str, Any]:
    """
    Event fields safe to persist. Failure messages may carry mysql output
    that echoes a statement, so string values have passwords masked.
    """
    return {
        k: scrub(v) if isinstance(v, str) else v
        for k, v in event.dict().items()
    }
