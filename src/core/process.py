# src/core/process.py - v1
"""Run a single external command and capture its output.

Timeouts and start failures are reported in the returned CommandOutput
instead of raising, so callers can turn them into step failures.
KeyboardInterrupt propagates; subprocess.run kills the child first.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from releaseflow.core.models import CommandOutput

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 600.0


def run_command(
    command: str | Sequence[str],
    cwd: str | Path | None = None,
    *,
    input_text: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = DEFAULT_TIMEOUT_S,
    shell: bool = False,
) -> CommandOutput:
    """Run *command* and capture stdout/stderr.

    Args:
        command: Argument list, or a string (split with shlex unless shell=True).
        cwd: Working directory.
        input_text: Text written to stdin.
        env: Extra environment variables layered over os.environ.
        timeout: Seconds before the process is killed (None = no limit).
        shell: Run through the system shell.

    Returns:
        CommandOutput; exit_code is 124 on timeout and 127 when the
        command cannot be started.
    """
    if isinstance(command, str):
        display = command
        args: str | list[str] = command if shell else shlex.split(command)
    else:
        args = list(command)
        display = shlex.join(args)

    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)

    logger.debug("Running: %s (cwd=%s)", display, cwd)
    try:
        proc = subprocess.run(
            args,
            cwd=str(cwd) if cwd is not None else None,
            input=input_text,
            env=full_env,
            shell=shell,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        logger.warning("Command timed out after %ss: %s", timeout, display)
        return CommandOutput(
            command=display,
            exit_code=124,
            stdout=_as_text(exc.stdout),
            stderr=_as_text(exc.stderr) or f"timed out after {timeout}s",
            timed_out=True,
        )
    except OSError as exc:
        logger.warning("Command failed to start: %s (%s)", display, exc)
        return CommandOutput(command=display, exit_code=127, stderr=str(exc))

    return CommandOutput(
        command=display,
        exit_code=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )


def _as_text(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
