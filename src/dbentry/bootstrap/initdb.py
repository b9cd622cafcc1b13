# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/bootstrap/initdb.py

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Mapping, Optional

from dbentry.errors import ProvisioningError
from dbentry.mysql.client import MysqlClient

log = logging.getLogger("dbentry")


class InitScriptRunner:
    """
    Runs the files a child image drops into the init directory, in name order:

      *.sh   sourced by bash with ``set -e``; ``$MYSQL_CLIENT`` holds the
             ready-to-eval client command
      *.sql  piped to the client
      other  ignored
    """

    def __init__(
        self,
        directory: Path,
        client: MysqlClient,
        *,
        shell: str = "bash",
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.directory = directory
        self.client = client
        self.shell = shell
        self.environ = dict(os.environ if environ is None else environ)

    def _script_env(self) -> dict[str, str]:
        env = dict(self.environ)
        env["MYSQL_CLIENT"] = shlex.join(self.client.command())
        return env

    def _source(self, path: Path) -> None:
        argv = [self.shell, "-ec", '. "$1"', "initdb", str(path)]
        try:
            cp = subprocess.run(argv, check=False, env=self._script_env())
        except OSError as exc:
            raise ProvisioningError(f"cannot run {path}: {exc}") from exc
        if cp.returncode != 0:
            raise ProvisioningError(f"init script {path} failed (rc={cp.returncode})")

    def files(self) -> List[Path]:
        if not self.directory.is_dir():
            return []
        return sorted(self.directory.iterdir())

    def run(self) -> List[Path]:
        """Returns the files that were executed."""
        executed: List[Path] = []
        for path in self.files():
            if path.suffix == ".sh":
                log.info(f"running {path}")
                self._source(path)
            elif path.suffix == ".sql":
                log.info(f"running {path}")
                self.client.source(path)
            else:
                log.warning(f"ignoring {path}")
                continue
            executed.append(path)
        return executed
