# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/mysql/statements.py

from __future__ import annotations

from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATES_DIR = Path(__file__).parent / "templates"


def quote_literal(value: object) -> str:
    """Single-quoted MySQL string literal."""
    text = "" if value is None else str(value)
    return "'" + text.replace("\\", "\\\\").replace("'", "\\'") + "'"


def quote_identifier(value: object) -> str:
    """Backtick-quoted MySQL identifier."""
    return "`" + str(value).replace("`", "``") + "`"


class Statements:
    """
    Administrative SQL issued by the entrypoint.

    Statement text is part of the container's observable behaviour, so every
    batch lives in a template under ``templates/`` rather than in code.
    """

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.env.filters["literal"] = quote_literal
        self.env.filters["ident"] = quote_identifier

    def render(self, template_name: str, **context) -> str:
        return self.env.get_template(template_name).render(**context)

    def root_user(self, password: str) -> str:
        return self.render("root_user.sql.j2", password=password)

    def create_database(self, database: str) -> str:
        return self.render("create_database.sql.j2", database=database)

    def default_user(self, user: str, password: str, database: Optional[str]) -> str:
        return self.render(
            "default_user.sql.j2", user=user, password=password, database=database
        )

    def replication_user(self, user: str, password: str) -> str:
        return self.render("replication_user.sql.j2", user=user, password=password)

    def expire_root(self) -> str:
        return self.render("expire_root.sql.j2")

    def replica_status(self) -> str:
        return self.render("replica_status.sql.j2")

    def change_master(
        self,
        pointer,
        *,
        user: str,
        password: str,
        port: int = 3306,
        connect_retry: int = 60,
        stop_replica: bool = False,
    ) -> str:
        # a running replica rejects CHANGE MASTER until it is stopped
        return self.render(
            "change_master.sql.j2",
            pointer=pointer,
            user=user,
            password=password,
            port=port,
            connect_retry=connect_retry,
            stop_replica=stop_replica,
        )
