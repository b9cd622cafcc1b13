# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/cli/dispatch.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence


class Operation(str, Enum):
    SERVE = "serve"
    REPLICA = "replica"
    HEALTH = "health"
    ON_CHANGE = "onChange"
    DUMP = "dump"
    EXEC = "exec"


# first-argument names of the internal operations
COMMANDS = {
    "replica": Operation.REPLICA,
    "health": Operation.HEALTH,
    "onChange": Operation.ON_CHANGE,
    "dump": Operation.DUMP,
}


@dataclass(frozen=True)
class Invocation:
    operation: Operation
    args: List[str] = field(default_factory=list)


def resolve(argv: Sequence[str]) -> Invocation:
    """
    Rules:
    - no argument            -> serve
    - first argument "-..."  -> serve, every argument is a mysqld flag
    - known operation name   -> that operation, the rest are its arguments
    - anything else          -> exec the whole argv unchanged
    """
    argv = list(argv)
    if not argv:
        return Invocation(Operation.SERVE)

    head, rest = argv[0], argv[1:]
    if head.startswith("-"):
        return Invocation(Operation.SERVE, argv)
    if head in COMMANDS:
        return Invocation(COMMANDS[head], rest)
    return Invocation(Operation.EXEC, argv)
