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
from typing import Optional

from voicerelay_py.config import ForwardConfig
from voicerelay_py.ssh.command import render_command, shell_quote
from voicerelay_py.ssh.process import LaunchError, run_process
from voicerelay_py.ssh.session import SSH_EXECUTABLE, SshOptions, build_argv
from voicerelay_py.ssh.target import parse_target, sanitize_target

logger = logging.getLogger(__name__)

CHECK_CONNECT_TIMEOUT = 4
CHECK_TIMEOUT = 6.0
MAX_ERROR_OUTPUT = 240


class ForwardError(RuntimeError):
    pass


class InvalidTarget(ForwardError):
    def __init__(self) -> None:
        super().__init__("Missing or invalid SSH target")


class LaunchFailed(ForwardError):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"ssh failed to start: {message}")


class NonZeroExit(ForwardError):
    def __init__(self, code: int, output: str, *, timed_out: bool = False) -> None:
        self.code = code
        self.output = output[:MAX_ERROR_OUTPUT]
        self.timed_out = timed_out
        if self.output:
            super().__init__(f"ssh exited with code {code}: {self.output}")
        else:
            super().__init__(f"ssh exited with code {code}")


def error_code(error: BaseException) -> str:
    """Stable code for an ssh failure, used in structured log records."""
    if isinstance(error, InvalidTarget):
        return "SSH_TARGET"
    if isinstance(error, (LaunchFailed, LaunchError)):
        return "SSH_LAUNCH"
    if isinstance(error, NonZeroExit):
        return "SSH_TIMEOUT" if error.timed_out else "SSH_EXIT"
    return "UNEXPECTED_ERROR"


def _event(status: str, target: str, error: Optional[BaseException] = None) -> dict[str, object]:
    return {
        "event": "forward",
        "status": status,
        "target": target,
        "error_code": error_code(error) if error is not None else None,
    }


async def forward(
    transcript: str,
    config: ForwardConfig,
    *,
    log: Optional[logging.Logger] = None,
    executable: str = SSH_EXECUTABLE,
) -> None:
    """Run the rendered command for ``transcript`` on ``config.target``.

    Best effort: every failure is logged on ``log`` (the module logger by
    default) and nothing is raised.
    """
    if not config.enabled:
        return
    log = log or logger
    destination = config.target.strip()
    parsed = parse_target(destination)
    if parsed is None:
        log.error(
            "voice forward skipped: host missing",
            extra=_event("skipped", destination, InvalidTarget()),
        )
        return

    rendered = render_command(config.command_template, transcript)
    argv = build_argv(
        parsed,
        SshOptions(identity_path=config.identity_path),
        ["sh", "-c", shell_quote(rendered)],
    )
    try:
        result = await run_process(
            executable,
            argv,
            stdin_text=transcript,
            timeout=config.timeout,
            capture_output=True,
        )
    except LaunchError as exc:
        log.error(
            "voice forward failed to start ssh: %s",
            exc,
            extra=_event("error", parsed.user_host, exc),
        )
        return

    if result.returncode != 0:
        failure = NonZeroExit(result.returncode, result.output, timed_out=result.timed_out)
        log.error(
            "voice forward to %s failed: %s",
            parsed.user_host,
            failure,
            extra=_event("error", parsed.user_host, failure),
        )
        return
    log.debug(
        "voice forward delivered to %s",
        parsed.user_host,
        extra=_event("success", parsed.user_host),
    )


async def check_connection(
    config: ForwardConfig,
    *,
    executable: str = SSH_EXECUTABLE,
) -> Optional[ForwardError]:
    """Probe ``config.target`` with a no-op remote command.

    Returns ``None`` when ssh connects and ``true`` exits cleanly, otherwise
    the :class:`ForwardError` describing why it did not.
    """
    parsed = parse_target(sanitize_target(config.target))
    if parsed is None:
        return InvalidTarget()

    argv = build_argv(
        parsed,
        SshOptions(identity_path=config.identity_path, connect_timeout=CHECK_CONNECT_TIMEOUT),
        ["true"],
    )
    try:
        result = await run_process(executable, argv, timeout=CHECK_TIMEOUT, capture_output=True)
    except LaunchError as exc:
        return LaunchFailed(str(exc))
    if result.returncode == 0:
        return None
    return NonZeroExit(result.returncode, result.output, timed_out=result.timed_out)
