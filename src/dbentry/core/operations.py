# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/core/operations.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

import pymysql

from dbentry.bootstrap.engine import BootstrapEngine
from dbentry.config.models import EntrypointConfig
from dbentry.errors import ProvisioningError
from dbentry.mysql.client import ClientArgs, MysqlClient
from dbentry.mysql.server import MysqldRunner
from dbentry.node.renderer import ConfigRenderer, HostFacts, NodeConfig
from dbentry.observers.dispatcher import EventBus
from dbentry.replication.configurator import ReplicationConfigurator
from dbentry.replication.discovery import PrimaryDiscovery
from dbentry.utils.fs import chown_tree

log = logging.getLogger("dbentry")


class Entrypoint:
    """
    The operations the container can be started with.

    ``serve`` and ``replica`` end by replacing this process with mysqld;
    ``health``, ``on_change`` and ``dump`` return an exit status.
    """

    def __init__(
        self,
        config: EntrypointConfig,
        *,
        server: Optional[MysqldRunner] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[dict] = None,
        hostname: Optional[str] = None,
        engine: Optional[BootstrapEngine] = None,
        discovery: Optional[PrimaryDiscovery] = None,
    ):
        self.config = config
        self.server = server or MysqldRunner(config.server)
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or {}
        self.hostname = hostname
        self._engine = engine
        self._discovery = discovery

    # ------------------------------------------------------------------
    # Shared preparation
    # ------------------------------------------------------------------

    @property
    def engine(self) -> BootstrapEngine:
        if self._engine is None:
            self._engine = BootstrapEngine(
                self.config, self.server, bus=self.bus, run_ctx=self.run_ctx
            )
        return self._engine

    def prepare(self) -> NodeConfig:
        """Render my.cnf and hand the (possibly mounted) datadir to mysql."""
        datadir = self.config.paths.datadir or self.server.datadir()
        facts = HostFacts.collect(self.config.paths.meminfo, self.hostname)
        node = ConfigRenderer(self.config.paths.config_file).render(
            facts, datadir, self.config.buffer_pool_size
        )

        if datadir.exists():
            try:
                chown_tree(datadir, self.config.server.user)
            except (OSError, LookupError) as exc:
                raise ProvisioningError(f"cannot chown {datadir}: {exc}") from exc
        return node

    def _root_args(self, binary: str) -> ClientArgs:
        args = ClientArgs(binary=binary)
        args.authenticate(self.config.credentials.root_password)
        return args

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def serve(self, flags: Sequence[str] = ()) -> int:
        node = self.prepare()
        self.engine.bootstrap_if_needed(node.data_dir)
        self.server.exec_server(flags)
        return 0

    def replica(self, flags: Sequence[str] = ()) -> int:
        node = self.prepare()

        configurator = ReplicationConfigurator(
            self.config,
            self._discovery or PrimaryDiscovery(self.config.discovery, bus=self.bus, run_ctx=self.run_ctx),
            bus=self.bus,
            run_ctx=self.run_ctx,
        )
        configurator.check()

        if self.engine.bootstrap_if_needed(node.data_dir, hooks=[configurator]) is None:
            self.engine.maintenance(node.data_dir, hooks=[configurator])

        self.server.exec_server(flags)
        return 0

    def health(self) -> int:
        """Liveness: root can run SELECT 1 over the local socket."""
        try:
            conn = pymysql.connect(
                unix_socket=str(self.config.paths.socket),
                user="root",
                password=self.config.credentials.root_password or "",
                connect_timeout=5,
            )
        except pymysql.MySQLError as exc:
            log.warning(f"health check failed: {exc}")
            return 1

        try:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
        except pymysql.MySQLError as exc:
            log.warning(f"health check failed: {exc}")
            return 1
        finally:
            conn.close()

        log.debug("health check ok")
        return 0

    def on_change(self, args: Sequence[str] = ()) -> int:
        # no change handler contract exists yet
        log.info("Doing onChange handler: nothing configured")
        return 0

    def dump(self, args: Sequence[str] = ()) -> int:
        target = Path(args[0]) if args else self.config.paths.dump_file
        MysqlClient(self._root_args(self.config.server.mysqldump)).dump(target)
        log.info(f"Wrote dump to {target}")
        return 0
