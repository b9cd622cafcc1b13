# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/bootstrap/credentials.py

from __future__ import annotations

import secrets
import string
from typing import Callable, Tuple

from dbentry.config.models import Credentials
from dbentry.errors import ConfigurationError


def gen_password(length: int = 32) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def check_credentials(creds: Credentials) -> None:
    """An uninitialized data directory needs one way to set the root password."""
    if creds.root_password or creds.allow_empty_password or creds.random_root_password:
        return
    raise ConfigurationError(
        "database is uninitialized and password option is not specified\n"
        "  You need to specify one of MYSQL_ROOT_PASSWORD, "
        "MYSQL_ALLOW_EMPTY_PASSWORD and MYSQL_RANDOM_ROOT_PASSWORD"
    )


def resolve_root_password(
    creds: Credentials,
    generator: Callable[[], str] = gen_password,
) -> Tuple[str, bool]:
    """
    Returns (password, generated). A random password wins over an explicit
    one, an allowed empty password resolves to "".
    """
    if creds.random_root_password:
        return generator(), True
    return creds.root_password or "", False


def check_restart_credentials(creds: Credentials) -> None:
    """
    Restart work on an initialized data directory logs in with
    MYSQL_ROOT_PASSWORD; generated and expired root passwords cannot be used.
    """
    if creds.random_root_password:
        raise ConfigurationError(
            "cannot log in to an initialized database: the root password was "
            "generated at first boot (unset MYSQL_RANDOM_ROOT_PASSWORD and set "
            "MYSQL_ROOT_PASSWORD)"
        )
    if creds.onetime_password:
        raise ConfigurationError(
            "cannot log in to an initialized database: the root password was "
            "expired at first boot (unset MYSQL_ONETIME_PASSWORD and set the "
            "changed MYSQL_ROOT_PASSWORD)"
        )
    if not (creds.root_password or creds.allow_empty_password):
        raise ConfigurationError(
            "cannot log in to an initialized database: MYSQL_ROOT_PASSWORD is not set"
        )
