# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/bootstrap/instance.py

from __future__ import annotations

import logging
import signal
import subprocess
from pathlib import Path
from typing import Callable, Optional

from dbentry.errors import ProvisioningError
from dbentry.mysql.server import MysqldRunner
from dbentry.observers.dispatcher import EventBus
from dbentry.observers.events import InstanceStarted, InstanceStopped

from .waiter import ConnectionWaiter

log = logging.getLogger("dbentry")

# mysqld exits 0 on SIGTERM; a bare signal death is still a clean stop
_CLEAN_EXIT = {0, -signal.SIGTERM}


class TemporaryInstance:
    """
    A socket-only mysqld used while the data directory is provisioned.

    Use it as a context manager: the process is stopped on every exit path.

        with TemporaryInstance(server, datadir) as instance:
            instance.wait_ready(waiter, client.ping)
            ...
    """

    def __init__(
        self,
        server: MysqldRunner,
        datadir: Path,
        *,
        stop_timeout: float = 60.0,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[dict] = None,
    ):
        self.server = server
        self.datadir = datadir
        self.stop_timeout = stop_timeout
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or {}
        self.process: Optional[subprocess.Popen] = None

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    def start(self) -> None:
        if self.process is not None:
            raise ProvisioningError(f"temporary mysqld already running (pid {self.pid})")
        self.process = self.server.spawn_bootstrap(self.datadir)
        log.info(f"Running temporary bootstrap mysqld PID: {self.pid}")
        if self.run_ctx:
            self.bus.emit(InstanceStarted(pid=self.pid, **self.run_ctx))

    def wait_ready(self, waiter: ConnectionWaiter, probe: Callable[[], bool]) -> int:
        return waiter.wait(probe)

    def stop(self) -> int:
        """Terminate and reap the process; raises unless it exited cleanly."""
        if self.process is None:
            return 0

        proc, self.process = self.process, None
        log.info(f"Shutting down temporary bootstrap mysqld: {proc.pid}")
        if proc.poll() is None:
            proc.terminate()
        try:
            rc = proc.wait(timeout=self.stop_timeout)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
            raise ProvisioningError(
                f"MySQL init process failed: pid {proc.pid} ignored SIGTERM for "
                f"{self.stop_timeout}s and was killed"
            )
        finally:
            if self.run_ctx:
                self.bus.emit(InstanceStopped(pid=proc.pid, returncode=proc.returncode, **self.run_ctx))

        if rc not in _CLEAN_EXIT:
            raise ProvisioningError(f"MySQL init process failed: pid {proc.pid} exited with {rc}")
        return rc

    # ------------------------------------------------------------------
    def __enter__(self) -> "TemporaryInstance":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.stop()
            return False
        try:
            self.stop()
        except ProvisioningError as stop_exc:
            # keep the original failure as the one reported
            log.error(str(stop_exc))
        return False
