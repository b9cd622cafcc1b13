# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/mysql/server.py

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, NoReturn, Sequence

from dbentry.config.models import ServerSettings
from dbentry.errors import ConfigurationError, ProvisioningError

log = logging.getLogger("dbentry")


class MysqldRunner:
    """
    Wrapper around the ``mysqld`` binary and its companion tools.
    """

    def __init__(self, settings: ServerSettings | None = None):
        self.settings = settings or ServerSettings()

    def _run(self, argv: List[str], **kwargs) -> subprocess.CompletedProcess:
        log.debug(f"$ {' '.join(argv)}")
        try:
            return subprocess.run(
                argv, check=False, text=True, errors="replace", capture_output=True, **kwargs
            )
        except OSError as exc:
            raise ProvisioningError(f"cannot run {argv[0]}: {exc}") from exc

    # ------------------------------------------------------------------
    def datadir(self) -> Path:
        """
        Ask mysqld where its data directory is, honouring my.cnf.

        --log-bin-index keeps the help run from touching the real binlog index.
        """
        argv = [self.settings.mysqld, "--verbose", "--help", "--log-bin-index=/tmp/tmp.index"]
        cp = self._run(argv)
        for line in (cp.stdout or "").splitlines():
            fields = line.split()
            if len(fields) >= 2 and fields[0] == "datadir":
                return Path(fields[1])
        raise ConfigurationError(
            f"could not determine datadir from `{' '.join(argv)}` (rc={cp.returncode})"
        )

    # ------------------------------------------------------------------
    def initialize(self, datadir: Path) -> None:
        """Create an empty system schema with a password-less root account."""
        argv = [
            self.settings.mysqld,
            "--initialize-insecure=on",
            f"--user={self.settings.user}",
            f"--datadir={datadir}",
        ]
        cp = self._run(argv)
        if cp.returncode != 0:
            raise ProvisioningError(
                f"mysqld --initialize-insecure failed (rc={cp.returncode})\n{cp.stderr or ''}"
            )

    def spawn_bootstrap(self, datadir: Path) -> subprocess.Popen:
        """Start a socket-only mysqld in the background."""
        argv = [
            self.settings.mysqld,
            f"--user={self.settings.user}",
            f"--datadir={datadir}",
            "--skip-networking",
        ]
        log.debug(f"$ {' '.join(argv)} &")
        try:
            return subprocess.Popen(argv)
        except OSError as exc:
            raise ProvisioningError(f"cannot start {argv[0]}: {exc}") from exc

    def load_timezones(self, zoneinfo_dir: Path) -> str:
        """SQL for the mysql.time_zone* tables generated from the system zoneinfo."""
        argv = [self.settings.tzinfo_to_sql, str(zoneinfo_dir)]
        cp = self._run(argv)
        if cp.returncode != 0:
            raise ProvisioningError(
                f"{self.settings.tzinfo_to_sql} failed (rc={cp.returncode})\n{cp.stderr or ''}"
            )
        return cp.stdout

    # ------------------------------------------------------------------
    def exec_server(self, flags: Sequence[str]) -> NoReturn:
        """Replace this process with the long-running server."""
        argv = [self.settings.mysqld, *flags]
        log.info(f"Starting {' '.join(argv)}")
        try:
            os.execvp(argv[0], argv)
        except OSError as exc:
            raise ProvisioningError(f"cannot exec {argv[0]}: {exc}") from exc
