import logging
from pathlib import Path

import pytest

from dbentry.config.models import Credentials, EntrypointConfig, Paths


@pytest.fixture(autouse=True)
def _dbentry_logger():
    # init_logging detaches the logger from root; let caplog see it again
    logger = logging.getLogger("dbentry")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.DEBUG)
    yield
    logger.handlers.clear()
    logger.propagate = True


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(**creds) -> EntrypointConfig:
        return EntrypointConfig(
            credentials=Credentials(**creds),
            paths=Paths(
                config_file=tmp_path / "my.cnf",
                initdb_dir=tmp_path / "initdb.d",
                zoneinfo_dir=tmp_path / "zoneinfo",
                meminfo=tmp_path / "meminfo",
                datadir=tmp_path / "data",
            ),
        )
    return _make
