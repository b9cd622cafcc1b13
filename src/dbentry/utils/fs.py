# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dbentry/utils/fs.py

from __future__ import annotations

import os
import shutil
from pathlib import Path


def chown_tree(path: Path, user: str, group: str | None = None) -> None:
    """``chown -R user:group path``"""
    group = group or user
    shutil.chown(path, user, group)
    for root, dirs, files in os.walk(path):
        for name in dirs + files:
            shutil.chown(os.path.join(root, name), user, group)
