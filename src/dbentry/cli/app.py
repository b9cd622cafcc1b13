# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/cli/app.py
from __future__ import annotations

import os
import socket
from typing import List, NoReturn

import typer

from dbentry.cli.dispatch import Invocation, Operation, resolve
from dbentry.config.loader import load_config
from dbentry.config.models import EntrypointConfig
from dbentry.core.operations import Entrypoint
from dbentry.errors import EntrypointError
from dbentry.logging.log import init_logging
from dbentry.observers.dispatcher import EventBus
from dbentry.observers.events import new_ctx
from dbentry.observers.jsonfile import JsonFileObserver
from dbentry.observers.logger import LoggerObserver


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="MySQL container entrypoint", add_completion=False)

# every argument, including --help, belongs to mysqld or the exec'd command
PASSTHROUGH = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "help_option_names": [],
}


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------

def exec_external(argv: List[str]) -> NoReturn:
    """Replace this process with an arbitrary command."""
    os.execvp(argv[0], argv)


def build_entrypoint(config: EntrypointConfig, operation: Operation, logger, run_id: str) -> Entrypoint:
    observers = [LoggerObserver(logger)]
    if config.paths.events_file:
        observers.append(JsonFileObserver(config.paths.events_file))

    hostname = socket.gethostname()
    return Entrypoint(
        config,
        bus=EventBus(observers=observers),
        run_ctx=new_ctx(operation=operation.value, host=hostname, run_id=run_id),
        hostname=hostname,
    )


def run_invocation(entry: Entrypoint, invocation: Invocation) -> int:
    op = invocation.operation
    if op is Operation.SERVE:
        return entry.serve(invocation.args)
    if op is Operation.REPLICA:
        return entry.replica(invocation.args)
    if op is Operation.HEALTH:
        return entry.health()
    if op is Operation.ON_CHANGE:
        return entry.on_change(invocation.args)
    if op is Operation.DUMP:
        return entry.dump(invocation.args)
    raise ValueError(f"{op} is not an internal operation")


# ------------------------------------------------------------------------------
# Command
# ------------------------------------------------------------------------------

@app.command(context_settings=PASSTHROUGH)
def main(ctx: typer.Context) -> None:
    """
    dbentry [mysqld flags...|replica|health|onChange|dump|command [args...]]
    """
    invocation = resolve(ctx.args)

    logger, run_id, _ = init_logging(verbose=bool(os.environ.get("DBENTRY_DEBUG")))

    if invocation.operation is Operation.EXEC:
        logger.debug(f"exec {' '.join(invocation.args)}")
        try:
            exec_external(invocation.args)
        except OSError as exc:
            logger.error(f"cannot exec {invocation.args[0]}: {exc}")
            raise typer.Exit(code=1)
        return

    try:
        config = load_config()
        if config.paths.log_dir or config.debug:
            logger, run_id, _ = init_logging(log_dir=config.paths.log_dir, verbose=config.debug)

        entry = build_entrypoint(config, invocation.operation, logger, run_id)
        code = run_invocation(entry, invocation)
    except EntrypointError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=1)

    raise typer.Exit(code=code)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
