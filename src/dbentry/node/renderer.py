# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/node/renderer.py

from __future__ import annotations

import logging
import re
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from dbentry.errors import ConfigurationError

log = logging.getLogger("dbentry")

BUFFER_POOL_RATIO = 0.7


# ------------------------------------------------------------------------------
# Host facts
# ------------------------------------------------------------------------------

def read_mem_total_kb(meminfo: Path = Path("/proc/meminfo")) -> Optional[int]:
    """MemTotal in kB, or None when the file or the field is unusable."""
    try:
        text = meminfo.read_text()
    except (OSError, UnicodeDecodeError):
        return None
    for line in text.splitlines():
        if line.startswith("MemTotal:"):
            fields = line.split()
            try:
                return int(fields[1])
            except (IndexError, ValueError):
                return None
    return None


@dataclass(frozen=True)
class HostFacts:
    hostname: str
    mem_total_kb: Optional[int]

    @classmethod
    def collect(
        cls,
        meminfo: Path = Path("/proc/meminfo"),
        hostname: Optional[str] = None,
    ) -> "HostFacts":
        return cls(
            hostname=hostname or socket.gethostname(),
            mem_total_kb=read_mem_total_kb(meminfo),
        )


# ------------------------------------------------------------------------------
# Node identity and sizing
# ------------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeConfig:
    buffer_pool_size: str
    server_id: int
    report_host: str
    data_dir: Path

    def settings(self) -> Dict[str, str]:
        return {
            "innodb_buffer_pool_size": self.buffer_pool_size,
            "server-id": str(self.server_id),
            "report-host": self.report_host,
        }


def default_buffer_pool_size(mem_total_kb: Optional[int]) -> str:
    """70% of physical memory, in megabytes."""
    if not mem_total_kb or mem_total_kb <= 0:
        raise ConfigurationError(
            "cannot size innodb_buffer_pool_size: MemTotal is missing from meminfo "
            "(set INNODB_BUFFER_POOL_SIZE explicitly)"
        )
    return f"{round(mem_total_kb / 1024 * BUFFER_POOL_RATIO)}M"


def server_id_for(hostname: str) -> int:
    """
    First four hostname characters read as hex. Container hostnames are
    container ids, so the id survives restarts of the same container.
    """
    prefix = hostname[:4]
    try:
        return int(prefix, 16)
    except ValueError:
        raise ConfigurationError(
            f"cannot derive server-id: hostname {hostname!r} does not start with hex digits"
        ) from None


# ------------------------------------------------------------------------------
# my.cnf rewriting
# ------------------------------------------------------------------------------

_SECTION = re.compile(r"^\s*\[(?P<name>[^\]]+)\]\s*$")


def _key_pattern(key: str) -> re.Pattern:
    # mysqld treats '-' and '_' in option names as the same character
    name = "[-_]".join(re.escape(part) for part in re.split(r"[-_]", key))
    return re.compile(rf"^(?P<lead>\s*{name}\s*=\s*)(?P<value>.*?)(?P<eol>\r?\n?)$")


def rewrite_settings(text: str, settings: Dict[str, str]) -> str:
    """
    Replace the value of each key in place, keeping the line's spacing.
    Keys that are absent are added right after the [mysqld] header.
    """
    lines: List[str] = text.splitlines(keepends=True)
    missing = dict(settings)

    for i, line in enumerate(lines):
        for key, value in settings.items():
            m = _key_pattern(key).match(line)
            if m:
                lines[i] = f"{m.group('lead')}{value}{m.group('eol')}"
                missing.pop(key, None)
                break

    if missing:
        added = [f"{key}={value}\n" for key, value in missing.items()]
        header = next(
            (i for i, line in enumerate(lines)
             if (m := _SECTION.match(line)) and m.group("name").strip() == "mysqld"),
            None,
        )
        if header is None:
            if lines and not lines[-1].endswith("\n"):
                lines[-1] += "\n"
            lines += ["[mysqld]\n"] + added
        else:
            lines[header + 1:header + 1] = added

    return "".join(lines)


class ConfigRenderer:
    """
    Renders the per-boot node settings into my.cnf.

    Runs on every start so a renamed host or a resized container is picked
    up; only the managed keys are touched.
    """

    def __init__(self, config_file: Path = Path("/etc/my.cnf")):
        self.config_file = config_file

    def build(
        self,
        facts: HostFacts,
        data_dir: Path,
        override: Optional[str] = None,
    ) -> NodeConfig:
        buffer = override if override else default_buffer_pool_size(facts.mem_total_kb)
        return NodeConfig(
            buffer_pool_size=buffer,
            server_id=server_id_for(facts.hostname),
            report_host=facts.hostname,
            data_dir=data_dir,
        )

    def write(self, node: NodeConfig) -> bool:
        """Returns True when the file content changed."""
        try:
            current = self.config_file.read_text()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"cannot read {self.config_file}: {exc}") from exc

        rendered = rewrite_settings(current, node.settings())
        if rendered == current:
            log.debug(f"{self.config_file} already up to date")
            return False

        self.config_file.write_text(rendered)
        log.info(
            f"Rendered {self.config_file}: "
            + ", ".join(f"{k}={v}" for k, v in node.settings().items())
        )
        return True

    def render(
        self,
        facts: HostFacts,
        data_dir: Path,
        override: Optional[str] = None,
    ) -> NodeConfig:
        node = self.build(facts, data_dir, override)
        self.write(node)
        return node
