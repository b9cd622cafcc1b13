# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/config/loader.py

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

import yaml
from pydantic import ValidationError

from dbentry.errors import ConfigurationError
from .models import EntrypointConfig

log = logging.getLogger("dbentry")

# environment variable -> path inside EntrypointConfig
ENV_FIELDS: dict[str, tuple[str, ...]] = {
    "MYSQL_ROOT_PASSWORD": ("credentials", "root_password"),
    "MYSQL_ALLOW_EMPTY_PASSWORD": ("credentials", "allow_empty_password"),
    "MYSQL_RANDOM_ROOT_PASSWORD": ("credentials", "random_root_password"),
    "MYSQL_ONETIME_PASSWORD": ("credentials", "onetime_password"),
    "MYSQL_DATABASE": ("credentials", "database"),
    "MYSQL_USER": ("credentials", "user"),
    "MYSQL_PASSWORD": ("credentials", "password"),
    "MYSQL_REPL_USER": ("credentials", "repl_user"),
    "MYSQL_REPL_PASSWORD": ("credentials", "repl_password"),
    "INNODB_BUFFER_POOL_SIZE": ("buffer_pool_size",),
    "DBENTRY_DEBUG": ("debug",),
}

# presence flags: any non-empty value switches them on
FLAG_VARS = {
    "MYSQL_ALLOW_EMPTY_PASSWORD",
    "MYSQL_RANDOM_ROOT_PASSWORD",
    "MYSQL_ONETIME_PASSWORD",
    "DBENTRY_DEBUG",
}


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def _from_environ(environ: Mapping[str, str]) -> dict:
    data: dict = {}
    for var, dotted in ENV_FIELDS.items():
        value = environ.get(var, "")
        if value == "":
            continue
        node = data
        for key in dotted[:-1]:
            node = node.setdefault(key, {})
        node[dotted[-1]] = True if var in FLAG_VARS else value
    return data


def load_config(
    path: str | Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> EntrypointConfig:
    """
    Build the entrypoint configuration.

    Sources, later ones win:
      1. model defaults
      2. an optional YAML file (``path`` or ``$DBENTRY_CONFIG``) with
         ``${ENV_VAR}`` references expanded
      3. the MYSQL_* / INNODB_BUFFER_POOL_SIZE environment variables
    """
    environ = os.environ if environ is None else environ
    path = path or environ.get("DBENTRY_CONFIG")

    data: dict = {}
    if path:
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"config file {path} does not exist")
        log.debug("Loading settings from %s", path)
        try:
            data = _load_yaml(path)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"cannot parse {path}: {exc}") from exc

    _deep_merge(data, _from_environ(environ))

    try:
        return EntrypointConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid configuration: {exc}") from exc
