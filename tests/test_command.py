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

import random
import subprocess

import pytest

from voicerelay_py.ssh.command import PLACEHOLDER, render_command, shell_quote

_ALPHABET = "abc XYZ 019'\"`$;|&<>(){}[]*?!#~\\\n\t%^-=+/.,:é漢🎤"


def _shell_echo(word: str) -> str:
    result = subprocess.run(
        ["/bin/sh", "-c", f"printf %s {word}"],
        capture_output=True,
        check=True,
    )
    return result.stdout.decode("utf-8")


@pytest.mark.parametrize(
    "text",
    [
        "",
        "hello world",
        "it's",
        "''",
        "line one\nline two\n",
        "$(rm -rf /); `id`; echo $HOME",
        "back\\slash",
        "-n",
    ],
)
def test_shell_quote_round_trips_through_sh(text):
    assert _shell_echo(shell_quote(text)) == text


def test_shell_quote_fuzz_round_trip():
    rng = random.Random(20261016)
    for _ in range(60):
        text = "".join(rng.choice(_ALPHABET) for _ in range(rng.randint(0, 40)))
        quoted = shell_quote(text)
        assert quoted.startswith("'") and quoted.endswith("'")
        assert _shell_echo(quoted) == text


def test_shell_quote_shape():
    assert shell_quote("") == "''"
    assert shell_quote("it's") == "'it'\\''s'"


def test_render_without_placeholder_is_unchanged():
    assert render_command("echo fixed", "anything") == "echo fixed"


def test_render_substitutes_every_placeholder():
    template = f"say {PLACEHOLDER} && log {PLACEHOLDER}"
    assert render_command(template, "it's on") == "say 'it'\\''s on' && log 'it'\\''s on'"


def test_rendered_command_runs_transcript_as_one_argument():
    rendered = render_command(f"printf '[%s]' {PLACEHOLDER}", "a b; echo pwned")
    result = subprocess.run(["/bin/sh", "-c", rendered], capture_output=True, check=True)
    assert result.stdout.decode("utf-8") == "[a b; echo pwned]"
