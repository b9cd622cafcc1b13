# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/bootstrap/engine.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from dbentry.config.models import EntrypointConfig
from dbentry.errors import EntrypointError, ProvisioningError
from dbentry.mysql.client import ClientArgs, MysqlClient
from dbentry.mysql.server import MysqldRunner
from dbentry.mysql.statements import Statements
from dbentry.observers.dispatcher import EventBus
from dbentry.observers.events import StepFailed, StepSkipped, StepStarted, StepSucceeded
from dbentry.utils.fs import chown_tree

from .credentials import (
    check_credentials,
    check_restart_credentials,
    gen_password,
    resolve_root_password,
)
from .initdb import InitScriptRunner
from .instance import TemporaryInstance
from .state import BootstrapState, detect_state
from .waiter import ConnectionWaiter

log = logging.getLogger("dbentry")


@dataclass
class BootstrapContext:
    """State threaded through every bootstrap step."""

    datadir: Path
    client_args: ClientArgs
    instance: Optional[TemporaryInstance] = None
    generated_password: Optional[str] = None
    # set when the datadir was provisioned by an earlier boot
    resumed: bool = False
    completed: List[str] = field(default_factory=list)

    @property
    def client(self) -> MysqlClient:
        return MysqlClient(self.client_args)


# a post-provision step, e.g. replication setup
Hook = Callable[[BootstrapContext], object]


class BootstrapEngine:
    """
    Turns an empty data directory into a provisioned one, exactly once.

    Steps run strictly in order against a temporary socket-only mysqld:

      prepare-datadir -> initialize -> start-instance -> wait-for-connection
      -> load-timezones -> root-user -> create-database -> default-user
      -> replication-user -> init-scripts -> [hooks] -> expire-root-password

    The temporary instance is stopped whatever happens once it started.
    ``maintenance`` runs hooks alone on a datadir an earlier boot provisioned.
    """

    def __init__(
        self,
        config: EntrypointConfig,
        server: Optional[MysqldRunner] = None,
        *,
        statements: Optional[Statements] = None,
        waiter: Optional[ConnectionWaiter] = None,
        bus: Optional[EventBus] = None,
        run_ctx: Optional[dict] = None,
        password_factory: Callable[[], str] = gen_password,
    ):
        self.config = config
        self.server = server or MysqldRunner(config.server)
        self.statements = statements or Statements()
        self.waiter = waiter or ConnectionWaiter(config.startup.policy())
        self.bus = bus or EventBus()
        self.run_ctx = run_ctx or {}
        self.password_factory = password_factory

    # ------------------------------------------------------------------
    # Event helpers
    # ------------------------------------------------------------------

    def _emit(self, event_cls, **kwargs) -> None:
        if self.run_ctx:
            self.bus.emit(event_cls(**kwargs, **self.run_ctx))

    def _step(self, name: str, fn: Callable[[BootstrapContext], object], ctx: BootstrapContext) -> None:
        self._emit(StepStarted, step=name)
        t0 = time.time()
        try:
            fn(ctx)
        except EntrypointError as exc:
            self._emit(StepFailed, step=name, error=str(exc))
            raise
        except OSError as exc:
            self._emit(StepFailed, step=name, error=str(exc))
            raise ProvisioningError(f"{name} failed: {exc}") from exc
        ctx.completed.append(name)
        self._emit(StepSucceeded, step=name, duration_ms=int((time.time() - t0) * 1000))

    def _skip(self, name: str, reason: str) -> None:
        log.debug(f"skipping {name}: {reason}")
        self._emit(StepSkipped, step=name, reason=reason)

    def _instance(self, datadir: Path) -> TemporaryInstance:
        return TemporaryInstance(
            self.server,
            datadir,
            stop_timeout=self.config.server.stop_timeout,
            bus=self.bus,
            run_ctx=self.run_ctx,
        )

    def _client_args(self) -> ClientArgs:
        return ClientArgs(binary=self.config.server.mysql)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def prepare_datadir(self, ctx: BootstrapContext) -> None:
        ctx.datadir.mkdir(parents=True, exist_ok=True)
        chown_tree(ctx.datadir, self.config.server.user)

    def initialize(self, ctx: BootstrapContext) -> None:
        log.info("Initializing database...")
        self.server.initialize(ctx.datadir)
        log.info("Database initialized.")

    def wait_for_connection(self, ctx: BootstrapContext) -> None:
        ctx.instance.wait_ready(self.waiter, ctx.client.ping)

    def load_timezones(self, ctx: BootstrapContext) -> None:
        sql = self.server.load_timezones(self.config.paths.zoneinfo_dir)
        ctx.client.execute(sql, "mysql")

    def setup_root_user(self, ctx: BootstrapContext) -> None:
        password, generated = resolve_root_password(self.config.credentials, self.password_factory)
        if generated:
            ctx.generated_password = password
            # cannot be recovered later, so this is the only place it is shown
            log.info(f"GENERATED ROOT PASSWORD: {password}")

        ctx.client.execute(self.statements.root_user(password))
        ctx.client_args.authenticate(password)

    def create_database(self, ctx: BootstrapContext) -> None:
        database = self.config.credentials.database
        ctx.client.execute(self.statements.create_database(database))
        ctx.client_args.use(database)

    def create_default_user(self, ctx: BootstrapContext) -> None:
        creds = self.config.credentials
        ctx.client.execute(
            self.statements.default_user(creds.user, creds.password, creds.database)
        )

    def create_replication_user(self, ctx: BootstrapContext) -> None:
        creds = self.config.credentials
        ctx.client.execute(
            self.statements.replication_user(creds.repl_user, creds.repl_password)
        )

    def run_init_scripts(self, ctx: BootstrapContext) -> None:
        InitScriptRunner(self.config.paths.initdb_dir, ctx.client).run()

    def expire_root_password(self, ctx: BootstrapContext) -> None:
        ctx.client.execute(self.statements.expire_root())

    # ------------------------------------------------------------------
    # Sequences
    # ------------------------------------------------------------------

    def run(self, datadir: Path, hooks: Sequence[Hook] = ()) -> BootstrapContext:
        """Full first-boot sequence. Refuses to touch an initialized datadir."""
        if detect_state(datadir) is BootstrapState.INITIALIZED:
            raise ProvisioningError(f"{datadir} is already initialized")

        creds = self.config.credentials
        check_credentials(creds)

        ctx = BootstrapContext(datadir=datadir, client_args=self._client_args())
        self._step("prepare-datadir", self.prepare_datadir, ctx)
        self._step("initialize", self.initialize, ctx)

        with self._instance(datadir) as instance:
            ctx.instance = instance
            self._step("wait-for-connection", self.wait_for_connection, ctx)
            self._step("load-timezones", self.load_timezones, ctx)
            self._step("root-user", self.setup_root_user, ctx)

            if creds.database:
                self._step("create-database", self.create_database, ctx)
            else:
                self._skip("create-database", "MYSQL_DATABASE not set")

            if creds.user and creds.password:
                self._step("default-user", self.create_default_user, ctx)
            else:
                self._skip("default-user", "MYSQL_USER/MYSQL_PASSWORD not set")

            if creds.repl_user and creds.repl_password:
                self._step("replication-user", self.create_replication_user, ctx)
            else:
                self._skip("replication-user", "MYSQL_REPL_USER/MYSQL_REPL_PASSWORD not set")

            self._step("init-scripts", self.run_init_scripts, ctx)

            for hook in hooks:
                self._step(_hook_name(hook), hook, ctx)

            # last: an expired root can do nothing but change its password
            if creds.onetime_password:
                self._step("expire-root-password", self.expire_root_password, ctx)
        ctx.instance = None

        log.info("MySQL init process done. Ready for start up.")
        return ctx

    def bootstrap_if_needed(self, datadir: Path, hooks: Sequence[Hook] = ()) -> Optional[BootstrapContext]:
        """Runs the full sequence on an empty datadir, returns None otherwise."""
        if detect_state(datadir) is BootstrapState.INITIALIZED:
            log.info(f"{datadir} already initialized, skipping bootstrap")
            return None
        return self.run(datadir, hooks)

    def maintenance(self, datadir: Path, hooks: Sequence[Hook]) -> BootstrapContext:
        """
        Runs hooks against a temporary instance on an already initialized
        datadir, authenticated with the configured root password.
        """
        check_restart_credentials(self.config.credentials)

        ctx = BootstrapContext(datadir=datadir, client_args=self._client_args(), resumed=True)
        ctx.client_args.authenticate(self.config.credentials.root_password)

        with self._instance(datadir) as instance:
            ctx.instance = instance
            self._step("wait-for-connection", self.wait_for_connection, ctx)
            for hook in hooks:
                self._step(_hook_name(hook), hook, ctx)
        ctx.instance = None
        return ctx


def _hook_name(hook: Hook) -> str:
    return getattr(hook, "step_name", None) or getattr(hook, "__name__", hook.__class__.__name__)
