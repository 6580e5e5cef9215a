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

import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_SSH_PORT = 22
MAX_PORT = 65535

_SSH_PREFIX = "ssh "
_PORT_RE = re.compile(r"^[+-]?[0-9]+$")


@dataclass(frozen=True)
class ParsedTarget:
    user: Optional[str]
    host: str
    port: int = DEFAULT_SSH_PORT

    @property
    def user_host(self) -> str:
        return f"{self.user}@{self.host}" if self.user else self.host


def sanitize_target(raw: str) -> str:
    """Trim a destination and drop a pasted ``ssh `` client prefix."""
    value = raw.strip()
    if value.startswith(_SSH_PREFIX):
        value = value[len(_SSH_PREFIX) :].strip()
    return value


def parse_target(raw: str) -> Optional[ParsedTarget]:
    """Parse ``[ssh ][user@]host[:port]`` into a :class:`ParsedTarget`.

    Returns ``None`` when nothing usable is left after trimming or the host
    part is empty. A suffix after the last colon is only taken as the port
    when it is an integer within the TCP port range; otherwise it stays part
    of the host.
    """
    if not raw.strip():
        return None
    remainder = sanitize_target(raw)

    user: Optional[str] = None
    if "@" in remainder:
        user, remainder = remainder.split("@", 1)

    host = remainder
    port = DEFAULT_SSH_PORT
    colon = remainder.rfind(":")
    if colon > 0:
        suffix = remainder[colon + 1 :]
        if _PORT_RE.match(suffix) and _in_port_range(suffix):
            port = int(suffix)
            host = remainder[:colon]

    host = host.strip()
    if not host:
        return None
    if user is not None:
        user = user.strip() or None
    return ParsedTarget(user=user, host=host, port=port)


def _in_port_range(digits: str) -> bool:
    # Length check first: int() refuses very long digit strings.
    return len(digits.lstrip("+-").lstrip("0")) <= len(str(MAX_PORT)) and abs(int(digits)) <= MAX_PORT
