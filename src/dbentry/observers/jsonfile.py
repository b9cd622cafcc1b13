# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/observers/jsonfile.py

from __future__ import annotations
import json
from pathlib import Path
from .interface import Observer, public_fields
from .events import BaseEvent


class JsonFileObserver(Observer):
    """Appends one JSON object per event, e.g. to a file shipped with the container logs."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        record = {"type": event.__class__.__name__, **public_fields(event)}
        with self.path.open("a") as f:
            f.write(json.dumps(record, default=str, sort_keys=True) + "\n")
