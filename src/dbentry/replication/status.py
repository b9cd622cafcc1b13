# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/replication/status.py

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dbentry.errors import ConfigurationError


@dataclass(frozen=True)
class ReplicationPointer:
    primary_host: str
    log_file: Optional[str] = None
    log_position: int = 0


def read_status(path: Path) -> Tuple[Optional[str], int]:
    """
    Last binlog coordinates recorded in a master.status file.

    The file holds tab separated ``<log file>\\t<position>`` lines, the shape
    ``mysql -N -e 'SHOW MASTER STATUS'`` prints; the last line wins. A missing
    file or position means "start of log".
    """
    if not path.is_file():
        return None, 0

    try:
        text = path.read_text()
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"{path}: not a text status record: {exc}") from None

    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return None, 0

    fields = lines[-1].split("\t")
    log_file = fields[0].strip() or None
    raw_pos = fields[1].strip() if len(fields) > 1 else ""
    try:
        position = int(raw_pos) if raw_pos else 0
    except ValueError:
        raise ConfigurationError(f"{path}: invalid binlog position {raw_pos!r}") from None
    return log_file, position


def pointer_for(primary_host: str, status_file: Path) -> ReplicationPointer:
    log_file, position = read_status(status_file)
    return ReplicationPointer(primary_host=primary_host, log_file=log_file, log_position=position)
