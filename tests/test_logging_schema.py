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

import json
import logging

import pytest

pytest.importorskip("typer")

from voicerelay_py import cli
from voicerelay_py.forwarder import InvalidTarget, LaunchFailed, NonZeroExit
from voicerelay_py.ssh.process import LaunchError


def test_json_log_formatter_has_fixed_schema():
    formatter = cli.JsonLogFormatter()
    record = logging.LogRecord(
        name="voicerelay_py.cli",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="test message",
        args=(),
        exc_info=None,
    )
    record.event = "check"
    record.command = "check"
    record.target = "ops@relay"
    record.status = "success"
    record.elapsed_ms = 123
    record.error_code = None
    payload = json.loads(formatter.format(record))

    for key in (
        "timestamp",
        "level",
        "logger",
        "message",
        "event",
        "command",
        "target",
        "status",
        "elapsed_ms",
        "error_code",
    ):
        assert key in payload
    assert payload["message"] == "test message"
    assert "error_type" not in payload


def test_json_log_formatter_defaults_for_plain_records():
    formatter = cli.JsonLogFormatter()
    record = logging.LogRecord("x", logging.DEBUG, __file__, 1, "plain %s", ("msg",), None)
    payload = json.loads(formatter.format(record))
    assert payload["event"] == "log"
    assert payload["message"] == "plain msg"
    assert payload["level"] == "DEBUG"


def test_error_classification_codes():
    assert cli._classify_error(InvalidTarget()) == "SSH_TARGET"
    assert cli._classify_error(LaunchFailed("ENOENT")) == "SSH_LAUNCH"
    assert cli._classify_error(LaunchError("ENOENT")) == "SSH_LAUNCH"
    assert cli._classify_error(NonZeroExit(255, "denied")) == "SSH_EXIT"
    assert cli._classify_error(NonZeroExit(-15, "", timed_out=True)) == "SSH_TIMEOUT"
    assert cli._classify_error(ValueError("bad config")) == "CONFIG_ERROR"
    assert cli._classify_error(KeyError("boom")) == "UNEXPECTED_ERROR"
