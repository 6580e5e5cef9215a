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

from dataclasses import dataclass
from typing import Optional, Sequence

from voicerelay_py.ssh.target import ParsedTarget

SSH_EXECUTABLE = "/usr/bin/ssh"


@dataclass
class SshOptions:
    identity_path: Optional[str] = None
    connect_timeout: Optional[int] = None


def build_argv(target: ParsedTarget, options: SshOptions, remote_command: Sequence[str]) -> list[str]:
    """Assemble ssh arguments (without the executable) for ``target``."""
    argv = [
        "-o",
        "BatchMode=yes",
        "-o",
        "IdentitiesOnly=yes",
    ]
    if options.connect_timeout is not None:
        argv.extend(["-o", f"ConnectTimeout={options.connect_timeout}"])
    if target.port > 0:
        argv.extend(["-p", str(target.port)])
    if options.identity_path and options.identity_path.strip():
        argv.extend(["-i", options.identity_path])
    argv.append(target.user_host)
    argv.extend(remote_command)
    return argv
