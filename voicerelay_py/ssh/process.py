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

"""Subprocess lifecycle for the ssh client.

``run_process`` races the child's natural exit against a timer. Whichever
finishes first wins and the other task is cancelled, so no task, pipe or
child process outlives the call.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

MIN_TIMEOUT = 0.1
# Upper bound for each teardown step: SIGTERM→exit, SIGKILL→exit, reader→EOF.
TEARDOWN_GRACE = 1.0
_CHUNK_SIZE = 65536


class LaunchError(RuntimeError):
    pass


@dataclass
class ProcessResult:
    returncode: int
    output: str
    timed_out: bool = False


async def run_process(
    executable: str,
    args: Sequence[str],
    *,
    timeout: float,
    stdin_text: Optional[str] = None,
    capture_output: bool = True,
) -> ProcessResult:
    """Run ``executable`` with ``args`` and wait at most ``timeout`` seconds.

    stdout and stderr are merged into one capture when ``capture_output`` is
    set. ``stdin_text`` is written to the child and stdin is closed
    afterwards so commands reading standard input see EOF.

    Raises :class:`LaunchError` when the process cannot be spawned. A
    non-zero exit is reported through :attr:`ProcessResult.returncode`.
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.PIPE if stdin_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE if capture_output else asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.STDOUT if capture_output else asyncio.subprocess.DEVNULL,
        )
    except OSError as exc:
        raise LaunchError(str(exc) or type(exc).__name__) from exc

    captured = bytearray()
    reader = asyncio.create_task(_read_into(proc.stdout, captured)) if proc.stdout is not None else None
    payload = stdin_text.encode("utf-8") if stdin_text is not None else None
    fired = asyncio.Event()
    waiter = asyncio.create_task(_feed_and_wait(proc, payload))
    timer = asyncio.create_task(_terminate_after(proc, max(timeout, MIN_TIMEOUT), fired))
    try:
        done, pending = await asyncio.wait({waiter, timer}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if waiter in done:
            waiter.result()
        await _drain(reader)
    finally:
        for task in (waiter, timer, reader):
            if task is not None and not task.done():
                task.cancel()
        if proc.returncode is None:
            _kill(proc)
        # Closes the pipe transports even when a grandchild still holds the
        # write end of the capture pipe.
        proc._transport.close()

    timed_out = fired.is_set()
    returncode = proc.returncode if proc.returncode is not None else -1
    output = _decode(bytes(captured))
    if returncode != 0:
        logger.debug("%s exited with %s (timed_out=%s): %s", executable, returncode, timed_out, output)
    return ProcessResult(returncode=returncode, output=output, timed_out=timed_out)


async def _read_into(stream: asyncio.StreamReader, buffer: bytearray) -> None:
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return
        buffer.extend(chunk)


async def _feed_and_wait(proc: asyncio.subprocess.Process, payload: Optional[bytes]) -> int:
    if proc.stdin is not None:
        try:
            if payload:
                proc.stdin.write(payload)
                await proc.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("pid %s closed stdin before reading the transcript", proc.pid)
        finally:
            proc.stdin.close()
    return await proc.wait()


async def _terminate_after(proc: asyncio.subprocess.Process, delay: float, fired: asyncio.Event) -> None:
    await asyncio.sleep(delay)
    if proc.returncode is not None:
        return
    logger.debug("pid %s still running after %.1fs, terminating", proc.pid, delay)
    try:
        proc.terminate()
    except ProcessLookupError:
        return
    fired.set()
    try:
        await asyncio.wait_for(proc.wait(), TEARDOWN_GRACE)
    except asyncio.TimeoutError:
        _kill(proc)
        try:
            await asyncio.wait_for(proc.wait(), TEARDOWN_GRACE)
        except asyncio.TimeoutError:
            logger.warning("pid %s did not exit after SIGKILL", proc.pid)


async def _drain(reader: Optional[asyncio.Task]) -> None:
    if reader is None:
        return
    try:
        await asyncio.wait_for(reader, TEARDOWN_GRACE)
    except asyncio.TimeoutError:
        # Something outside the child still holds the pipe open.
        logger.debug("output pipe not closed after exit, keeping partial capture")


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError:
        return ""
