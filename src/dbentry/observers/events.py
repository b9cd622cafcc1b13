# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single entrypoint invocation
    operation: str    # serve/replica/...
    host: Optional[str]

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(operation: str, host: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "run_id": run_id or str(uuid.uuid4()),
        "operation": operation,
        "host": host,
    }


# ---------------------------------------------------------------------
# Bootstrap steps
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepStarted(BaseEvent):
    step: str

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    step: str
    duration_ms: int

@dataclass(frozen=True)
class StepSkipped(BaseEvent):
    step: str
    reason: str

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    step: str
    error: str


# ---------------------------------------------------------------------
# Temporary instance
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class InstanceStarted(BaseEvent):
    pid: int

@dataclass(frozen=True)
class InstanceStopped(BaseEvent):
    pid: int
    returncode: Optional[int]


# ---------------------------------------------------------------------
# Replication
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PrimaryDiscovered(BaseEvent):
    address: str
    attempts: int

@dataclass(frozen=True)
class ReplicationConfigured(BaseEvent):
    primary_host: str
    log_file: Optional[str]
    log_position: int
