# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/bootstrap/state.py

from __future__ import annotations

from enum import Enum
from pathlib import Path


class BootstrapState(str, Enum):
    EMPTY = "empty"
    INITIALIZED = "initialized"


def detect_state(datadir: Path) -> BootstrapState:
    """The ``mysql`` system schema directory only exists after initialization."""
    if (datadir / "mysql").is_dir():
        return BootstrapState.INITIALIZED
    return BootstrapState.EMPTY
