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

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
import yaml
from pydantic import ValidationError

from voicerelay_py.config import RelaySettings, default_config_path
from voicerelay_py.forwarder import ForwardError, check_connection, error_code, forward
from voicerelay_py.ssh.process import LaunchError

app = typer.Typer(help="Relay voice transcripts to a remote host over ssh")

_VOICERELAY_HANDLER_ATTR = "_voicerelay_handler"


class CliUsageError(ValueError):
    pass


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "event": getattr(record, "event", "log"),
            "command": getattr(record, "command", ""),
            "target": getattr(record, "target", ""),
            "status": getattr(record, "status", ""),
            "elapsed_ms": getattr(record, "elapsed_ms", None),
            "error_code": getattr(record, "error_code", None),
        }
        error_type = getattr(record, "error_type", None)
        if error_type is not None:
            payload["error_type"] = error_type
        return json.dumps(payload, ensure_ascii=False)


def _classify_error(exc: BaseException) -> str:
    if isinstance(exc, (ForwardError, LaunchError)):
        return error_code(exc)
    if isinstance(exc, (ValueError, yaml.YAMLError)):
        return "CONFIG_ERROR"
    return "UNEXPECTED_ERROR"


def _event_extra(
    *,
    event: str,
    command: str,
    status: str,
    target: str = "",
    elapsed_seconds: float | None = None,
    error_code: str | None = None,
) -> dict[str, object]:
    return {
        "event": event,
        "command": command,
        "status": status,
        "target": target,
        "error_code": error_code,
        "elapsed_ms": int(elapsed_seconds * 1000) if elapsed_seconds is not None else None,
    }


def _read_config(config_path: Path) -> RelaySettings:
    try:
        return RelaySettings.load(config_path)
    except FileNotFoundError as exc:
        raise CliUsageError(str(exc)) from exc
    except (ValueError, ValidationError, yaml.YAMLError) as exc:
        raise CliUsageError(f"Failed to load config '{config_path}': {exc}") from exc


def _load_config(path: Optional[Path], command: str) -> RelaySettings:
    config_path = path or default_config_path()
    try:
        return _read_config(config_path)
    except CliUsageError as exc:
        logging.getLogger(__name__).error(
            "Config unusable: %s",
            exc,
            extra={
                **_event_extra(
                    event="load_config",
                    command=command,
                    status="error",
                    target=str(config_path),
                    error_code=_classify_error(exc),
                ),
                "error_type": type(exc.__cause__ or exc).__name__,
            },
        )
        raise


def _configure_logging(
    *,
    debug: bool,
    info: bool,
    warn: bool,
    logfile: Optional[Path],
    log_format: str,
) -> None:
    if debug:
        level = logging.DEBUG
    elif info:
        level = logging.INFO
    elif warn:
        level = logging.WARNING
    else:
        level = logging.INFO
    handler: logging.Handler
    if logfile:
        handler = logging.FileHandler(logfile)
    else:
        handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    setattr(handler, _VOICERELAY_HANDLER_ATTR, True)

    root = logging.getLogger()
    for existing in root.handlers:
        if getattr(existing, _VOICERELAY_HANDLER_ATTR, False):
            existing.close()
    root.handlers = [
        existing
        for existing in root.handlers
        if not getattr(existing, _VOICERELAY_HANDLER_ATTR, False)
    ]
    root.setLevel(level)
    root.addHandler(handler)


@app.command("forward")
def forward_command(
    text: Optional[str] = typer.Option(None, "--text", help="Transcript to relay; read from stdin when omitted."),
    config: Optional[Path] = typer.Option(None, "--config"),
    debug: bool = typer.Option(False, "--debug"),
    info: bool = typer.Option(False, "--info"),
    warn: bool = typer.Option(False, "--warn"),
    logfile: Optional[Path] = typer.Option(None, "--logfile"),
    log_format: str = typer.Option("text", "--log-format"),
) -> None:
    """Relay a transcript to the configured host.

    Delivery is best effort: ssh failures are logged and the command still
    exits successfully. Only an unusable config file is an error.
    """
    _configure_logging(
        debug=debug, info=info, warn=warn, logfile=logfile, log_format=log_format
    )
    logger = logging.getLogger(__name__)
    settings = _load_config(config, "forward")
    transcript = text if text is not None else typer.get_text_stream("stdin").read()
    if not settings.forward.enabled:
        logger.info(
            "Forwarding disabled; transcript dropped",
            extra=_event_extra(event="forward", command="forward", status="disabled"),
        )
        return
    started = time.monotonic()
    asyncio.run(
        forward(transcript, settings.forward, executable=settings.ssh_executable)
    )
    logger.info(
        "Forward attempt finished",
        extra=_event_extra(
            event="forward",
            command="forward",
            status="done",
            target=settings.forward.target.strip(),
            elapsed_seconds=time.monotonic() - started,
        ),
    )


@app.command("check")
def check_command(
    config: Optional[Path] = typer.Option(None, "--config"),
    debug: bool = typer.Option(False, "--debug"),
    info: bool = typer.Option(False, "--info"),
    warn: bool = typer.Option(False, "--warn"),
    logfile: Optional[Path] = typer.Option(None, "--logfile"),
    log_format: str = typer.Option("text", "--log-format"),
) -> None:
    """Check that the configured host accepts a non-interactive ssh login."""
    _configure_logging(
        debug=debug, info=info, warn=warn, logfile=logfile, log_format=log_format
    )
    logger = logging.getLogger(__name__)
    settings = _load_config(config, "check")
    target = settings.forward.target.strip()
    started = time.monotonic()
    error = asyncio.run(
        check_connection(settings.forward, executable=settings.ssh_executable)
    )
    if error is None:
        logger.info(
            "ssh connection check passed",
            extra=_event_extra(
                event="check",
                command="check",
                status="success",
                target=target,
                elapsed_seconds=time.monotonic() - started,
            ),
        )
        typer.echo("ok")
        return
    logger.warning(
        "ssh connection check failed: %s",
        error,
        extra={
            **_event_extra(
                event="check",
                command="check",
                status="error",
                target=target,
                elapsed_seconds=time.monotonic() - started,
                error_code=_classify_error(error),
            ),
            "error_type": type(error).__name__,
        },
    )
    typer.echo(str(error), err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
