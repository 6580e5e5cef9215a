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

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from voicerelay_py.ssh.command import PLACEHOLDER
from voicerelay_py.ssh.session import SSH_EXECUTABLE


class ForwardConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    target: str = ""
    identity_path: str = ""
    command_template: str = f"agent --message {PLACEHOLDER}"
    timeout: float = Field(default=10.0, ge=0, allow_inf_nan=False)

    @field_validator("identity_path", "target", mode="before")
    @classmethod
    def none_as_blank(cls, value: object) -> object:
        return "" if value is None else value


class RelaySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="VOICERELAY_", env_nested_delimiter="__")

    forward: ForwardConfig = Field(default_factory=ForwardConfig)
    ssh_executable: str = SSH_EXECUTABLE

    @classmethod
    def load(cls, path: Path) -> "RelaySettings":
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        raw = yaml.safe_load(path.read_text())
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError("Config file must contain a YAML mapping at the top level.")
        return cls(**raw)


def default_config_path() -> Path:
    return Path("voicerelay.yml")
