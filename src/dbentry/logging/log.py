# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/logging/log.py

from __future__ import annotations

import logging
import re
import shlex
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence


def redact(argv: Sequence[str]) -> str:
    """Render argv as a shell line with any mysql ``-p<password>`` value masked."""
    return shlex.join(
        "-p********" if a.startswith("-p") and len(a) > 2 else a for a in argv
    )


def init_logging(
    *,
    log_dir: Path | None = None,
    name: str = "dbentry",
    verbose: bool = False,
) -> tuple[logging.Logger, str, Path | None]:
    """
    Initializes:
      - console output on stderr (container logs)
      - a full DEBUG trace file when log_dir is set
      - returns run_id so observers can reuse it
    """
    run_id = str(uuid.uuid4())

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console = INFO by default, DEBUG when --debug is passed
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(formatter)
    logger.addHandler(ch)

    log_path = None
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        log_path = log_dir / f"{name}-{ts}-{run_id}.log"

        # File = FULL TRACE
        fh = logging.FileHandler(log_path)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    logger.debug(f"run_id={run_id}")
    if log_path:
        logger.debug(f"log_file={log_path}")

    return logger, run_id, log_path


# secrets that can surface in free text: mysql argv and echoed statements
_SECRET_PATTERNS = (
    (re.compile(r"(?<!\S)-p\S+"), "-p********"),
    (
        re.compile(r"(?i)\b(IDENTIFIED BY|MASTER_PASSWORD\s*=)\s*'(?:[^'\\]|\\.)*'"),
        r"\1 '********'",
    ),
)


def scrub(text: str) -> str:
    """Mask passwords in a message, e.g. mysql echoing the failed statement."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
