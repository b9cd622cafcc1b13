# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/mysql/client.py

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dbentry.errors import ProvisioningError
from dbentry.logging.log import redact

log = logging.getLogger("dbentry")


@dataclass
class ClientArgs:
    """
    The ``mysql`` invocation prefix used for every administrative call.

    Grows in a fixed order while a data directory is bootstrapped: socket
    auth as root, then the root password once it exists, then the default
    database once it was created.
    """

    binary: str = "mysql"
    user: str = "root"
    password: Optional[str] = None
    database: Optional[str] = None

    def authenticate(self, password: Optional[str]) -> None:
        # an empty root password keeps the bare socket login
        if password:
            self.password = password

    def use(self, database: Optional[str]) -> None:
        if database:
            self.database = database

    def argv(self) -> List[str]:
        cmd = [self.binary, "--protocol=socket", f"-u{self.user}"]
        if self.password:
            cmd.append(f"-p{self.password}")
        if self.database:
            cmd.append(self.database)
        return cmd


class MysqlClient:
    """
    A pragmatic wrapper around the ``mysql`` CLI.
    - SQL is fed on stdin, exactly like piping a heredoc into the client.
    - Testable by mocking subprocess.run.
    """

    def __init__(self, args: ClientArgs, env: dict[str, str] | None = None):
        self.args = args
        self.env = env or {}

    # ------------------------- internal helpers -------------------------

    def command(self, *extra: str) -> List[str]:
        return self.args.argv() + list(extra)

    def _run(self, argv: List[str], **kwargs) -> subprocess.CompletedProcess:
        log.debug(f"$ {redact(argv)}")
        try:
            cp = subprocess.run(
                argv,
                check=False,
                text=True,
                errors="replace",
                capture_output=True,
                env=self.env or None,
                **kwargs,
            )
        except OSError as exc:
            raise ProvisioningError(f"cannot run {argv[0]}: {exc}") from exc
        return cp

    # ------------------------- public API -------------------------

    def execute(self, sql: str, *extra: str) -> str:
        """Pipe *sql* to the client; extra args (e.g. a schema name) are appended."""
        argv = self.command(*extra)
        cp = self._run(argv, input=sql)
        if cp.returncode != 0:
            raise ProvisioningError(
                f"mysql failed (rc={cp.returncode}) for {redact(argv)}\n{cp.stderr or ''}"
            )
        return cp.stdout

    def source(self, path: Path) -> None:
        """Feed a .sql file to the client."""
        argv = self.command()
        with path.open("r") as fh:
            cp = self._run(argv, stdin=fh)
        if cp.returncode != 0:
            raise ProvisioningError(
                f"mysql failed (rc={cp.returncode}) while loading {path}\n{cp.stderr or ''}"
            )

    def dump(self, target: Path) -> None:
        """
        Write a full logical dump with the binlog coordinates embedded.
        Expects ``args.binary`` to point at mysqldump.
        """
        argv = self.command("--all-databases", "--master-data")
        log.debug(f"$ {redact(argv)} > {target}")
        with target.open("w") as fh:
            try:
                cp = subprocess.run(
                    argv,
                    check=False,
                    text=True,
                    errors="replace",
                    stdout=fh,
                    stderr=subprocess.PIPE,
                    env=self.env or None,
                )
            except OSError as exc:
                raise ProvisioningError(f"cannot run {argv[0]}: {exc}") from exc
        if cp.returncode != 0:
            raise ProvisioningError(
                f"{argv[0]} failed (rc={cp.returncode})\n{cp.stderr or ''}"
            )

    def ping(self) -> bool:
        """True when the server answers a trivial query."""
        cp = self._run(self.command(), input="SELECT 1")
        return cp.returncode == 0
