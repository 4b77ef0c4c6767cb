"""Child process helpers.

Every external command runs in its own session so that the whole process
tree it spawns (``yarn`` → ``node`` → …) can be signalled at once.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from pathlib import Path
from typing import IO, Any

log = logging.getLogger("extimpact")


def spawn(
    command: str,
    *,
    cwd: Path,
    stdout: int | IO[Any] | None = None,
    stderr: int | IO[Any] | None = None,
) -> subprocess.Popen[str]:
    """Start a shell command in a new process group."""
    log.debug("Starting in %s: %s", cwd, command)
    return subprocess.Popen(
        command,
        shell=True,
        cwd=str(cwd),
        stdout=stdout,
        stderr=stderr,
        text=True,
        start_new_session=True,
    )


def terminate(proc: subprocess.Popen[str], grace: float = 5.0) -> None:
    """Terminate a process group: SIGTERM first, SIGKILL after *grace* seconds.

    The group is signalled even when its leader has already exited, so
    that anything the command left running in its session is stopped too.
    The group id is the leader's pid because of ``start_new_session``.
    """
    _signal_group(proc.pid, signal.SIGTERM)
    if proc.poll() is not None:
        return

    try:
        proc.wait(timeout=grace)
    except subprocess.TimeoutExpired:
        log.debug("Process %d ignored SIGTERM, killing", proc.pid)
        _signal_group(proc.pid, signal.SIGKILL)
        proc.wait()


def _signal_group(pgid: int, sig: signal.Signals) -> None:
    try:
        os.killpg(pgid, sig)
    except (ProcessLookupError, PermissionError, OSError):
        pass
