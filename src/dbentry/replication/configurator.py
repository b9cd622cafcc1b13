# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/replication/configurator.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from dbentry.bootstrap.engine import BootstrapContext
from dbentry.config.models import EntrypointConfig
from dbentry.errors import ConfigurationError
from dbentry.mysql.client import MysqlClient
from dbentry.mysql.statements import Statements
from dbentry.observers.dispatcher import EventBus
from dbentry.observers.events import ReplicationConfigured

from .discovery import PrimaryDiscovery
from .status import ReplicationPointer, pointer_for

log = logging.getLogger("dbentry")


class ReplicationConfigurator:
    """
    Points this node at the discovered primary with a single CHANGE MASTER.

    Usable as a bootstrap hook: ``engine.run(datadir, hooks=[configurator])``.
    """

    step_name = "configure-replication"

    def __init__(
        self,
        config: EntrypointConfig,
        discovery: Optional[PrimaryDiscovery] = None,
        *,
        statements: Optional[Statements] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[dict] = None,
    ):
        self.config = config
        self.discovery = discovery or PrimaryDiscovery(config.discovery)
        self.statements = statements or Statements()
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or {}

    def check(self) -> None:
        creds = self.config.credentials
        if not (creds.repl_user and creds.repl_password):
            raise ConfigurationError(
                "replica mode needs MYSQL_REPL_USER and MYSQL_REPL_PASSWORD"
            )

    def is_configured(self, client: MysqlClient) -> bool:
        """True when the server already has a primary (SHOW SLAVE STATUS returns a row)."""
        return bool(client.execute(self.statements.replica_status()).strip())

    def configure(
        self,
        client: MysqlClient,
        datadir: Path,
        *,
        stop_replica: bool = False,
    ) -> ReplicationPointer:
        self.check()
        log.info("Setting up replication")

        primary = self.discovery.locate()
        pointer = pointer_for(primary, datadir / self.config.paths.status_file)

        creds = self.config.credentials
        client.execute(
            self.statements.change_master(
                pointer,
                user=creds.repl_user,
                password=creds.repl_password,
                port=self.config.replication.port,
                connect_retry=self.config.replication.connect_retry,
                stop_replica=stop_replica,
            )
        )

        log.info(
            f"Replicating from {pointer.primary_host} "
            f"({pointer.log_file or '<start>'}:{pointer.log_position})"
        )
        if self.run_ctx:
            self.bus.emit(
                ReplicationConfigured(
                    primary_host=pointer.primary_host,
                    log_file=pointer.log_file,
                    log_position=pointer.log_position,
                    **self.run_ctx,
                )
            )
        return pointer

    def __call__(self, ctx: BootstrapContext) -> Optional[ReplicationPointer]:
        if not ctx.resumed:
            return self.configure(ctx.client, ctx.datadir)

        # the replication coordinates live in the datadir and survive restarts
        if self.is_configured(ctx.client):
            log.info("Replication already configured, keeping the current primary and position")
            return None
        return self.configure(ctx.client, ctx.datadir, stop_replica=True)
