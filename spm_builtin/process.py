"""Subprocess helper shared by the swift and git wrappers."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from spm_core.context import RunContext
from spm_core.errors import CancellationError, ExternalToolError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1


def _launch_error(argv: list[str], cwd: Path | str | None, exc: OSError) -> ExternalToolError:
    if cwd is not None and not Path(cwd).is_dir():
        return ExternalToolError(argv, None, f"working directory {cwd} is not a directory")
    if isinstance(exc, FileNotFoundError):
        return ExternalToolError(argv, None, f"{argv[0]} not found in PATH")
    return ExternalToolError(argv, None, f"{argv[0]} could not be started: {exc}")


def _communicate(proc: subprocess.Popen[str], argv: list[str], ctx: RunContext | None) -> tuple[str, str]:
    if ctx is None:
        return proc.communicate()
    while True:
        try:
            wait = ctx.timeout(POLL_INTERVAL)
        except CancellationError as exc:
            proc.kill()
            proc.communicate()
            raise CancellationError(f"{' '.join(argv)} aborted: {exc}") from exc
        try:
            return proc.communicate(timeout=wait)
        except subprocess.TimeoutExpired:
            continue


def run_command(
    command: Sequence[str],
    *,
    cwd: Path | str | None = None,
    ctx: RunContext | None = None,
    merge_output: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run ``command`` to completion and raise on a non-zero exit.

    The error carries stderr, or stdout+stderr when ``merge_output`` is set.
    The child is polled against ``ctx``; cancellation or a passed deadline
    kills it and raises ``CancellationError``.
    """

    argv = list(command)
    if ctx is not None:
        ctx.check()
    logger.debug("running %s (cwd=%s)", " ".join(argv), cwd or ".")
    try:
        proc = subprocess.Popen(
            argv,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise _launch_error(argv, cwd, exc) from exc

    stdout, stderr = _communicate(proc, argv, ctx)
    result = subprocess.CompletedProcess(argv, proc.returncode, stdout, stderr)

    if result.returncode != 0:
        if merge_output:
            output = f"{result.stdout or ''}{result.stderr or ''}"
        else:
            output = result.stderr or ""
        raise ExternalToolError(argv, result.returncode, output)
    return result
