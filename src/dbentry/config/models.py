# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/config/models.py

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from dbentry.utils.retry import RetryPolicy


class Credentials(BaseModel):
    """The MYSQL_* environment surface. Flags are set when the variable is non-empty."""

    root_password: Optional[str] = None
    allow_empty_password: bool = False
    random_root_password: bool = False
    onetime_password: bool = False

    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None

    repl_user: Optional[str] = None
    repl_password: Optional[str] = None


class Paths(BaseModel):
    config_file: Path = Path("/etc/my.cnf")
    initdb_dir: Path = Path("/etc/initdb.d")
    zoneinfo_dir: Path = Path("/usr/share/zoneinfo")
    meminfo: Path = Path("/proc/meminfo")
    socket: Path = Path("/var/run/mysqld/mysqld.sock")
    datadir: Optional[Path] = None          # asked from mysqld when unset
    status_file: str = "master.status"      # relative to the datadir
    dump_file: Path = Path("dbdump.db")
    log_dir: Optional[Path] = None
    events_file: Optional[Path] = None


class ServerSettings(BaseModel):
    mysqld: str = "mysqld"
    mysql: str = "mysql"
    tzinfo_to_sql: str = "mysql_tzinfo_to_sql"
    mysqldump: str = "mysqldump"
    user: str = "mysql"
    stop_timeout: float = 60.0


class StartupSettings(BaseModel):
    attempts: int = Field(default=30, ge=1)
    interval: float = 1.0

    def policy(self) -> RetryPolicy:
        return RetryPolicy(interval=self.interval, attempts=self.attempts)


class DiscoverySettings(BaseModel):
    url: str = "http://consul:8500"
    service: str = "mysql"
    interval: float = 1.7
    request_timeout: float = 5.0

    def policy(self) -> RetryPolicy:
        # replicas cannot start without a primary, so never give up
        return RetryPolicy(interval=self.interval, attempts=None)


class ReplicationSettings(BaseModel):
    port: int = 3306
    connect_retry: int = 60


class EntrypointConfig(BaseModel):
    credentials: Credentials = Field(default_factory=Credentials)
    paths: Paths = Field(default_factory=Paths)
    server: ServerSettings = Field(default_factory=ServerSettings)
    startup: StartupSettings = Field(default_factory=StartupSettings)
    discovery: DiscoverySettings = Field(default_factory=DiscoverySettings)
    replication: ReplicationSettings = Field(default_factory=ReplicationSettings)

    buffer_pool_size: Optional[str] = None  # INNODB_BUFFER_POOL_SIZE override
    debug: bool = False
