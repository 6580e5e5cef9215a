# Copyright 2026 voicerelay
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# This file was created or modified with the assistance of an AI (Large Language Model).
# Review required for correctness, security, and licensing.

from __future__ import annotations

import logging
import stat
from pathlib import Path

import pytest

# Stands in for /usr/bin/ssh: skips options and the destination, then runs
# the remaining words through a shell the way sshd would.
FAKE_SSH = """#!/bin/sh
printf '%s\\n' "$@" > "$(dirname "$0")/argv.txt"
while [ $# -gt 0 ]; do
  case "$1" in
    -o|-p|-i) shift 2 ;;
    *) break ;;
  esac
done
shift
exec /bin/sh -c "$*"
"""


def write_script(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_ssh(tmp_path: Path) -> Path:
    return write_script(tmp_path / "ssh", FAKE_SSH)


@pytest.fixture(autouse=True)
def _reset_cli_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_voicerelay_handler", False):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def make_script(tmp_path: Path):
    def _make(name: str, body: str) -> Path:
        return write_script(tmp_path / name, body)

    return _make
