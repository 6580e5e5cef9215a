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

PLACEHOLDER = "${text}"


def shell_quote(text: str) -> str:
    """Quote ``text`` as a single POSIX shell word.

    Embedded single quotes close the quoted run, emit an escaped quote and
    reopen it: ``it's`` becomes ``'it'\\''s'``.
    """
    return "'" + text.replace("'", "'\\''") + "'"


def render_command(template: str, transcript: str) -> str:
    # Templates without the placeholder run as-is and drop the transcript.
    if PLACEHOLDER not in template:
        return template
    return template.replace(PLACEHOLDER, shell_quote(transcript))
