"""Application rebuilds between trials."""

from __future__ import annotations

import logging
import subprocess
import time

from extimpact.config import SweepConfig

log = logging.getLogger("extimpact")

_OUTPUT_TAIL_LINES = 20


def run_build(config: SweepConfig, *, full: bool = False) -> subprocess.CompletedProcess[str]:
    """Rebuild the application and wait for the build to finish.

    Runs ``full_build_command`` (install + build) when *full* is set,
    ``build_command`` otherwise, in the workspace root.  Output is captured
    and only surfaced when the build fails.

    Raises:
        subprocess.CalledProcessError: If the build exits non-zero.  A
            broken build leaves the manifest in a state worth inspecting,
            so there is no retry.
    """
    command = config.full_build_command if full else config.build_command
    log.debug("Build command: %s", command)

    start = time.monotonic()
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=str(config.root),
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        log.error("Build failed (exit %d): %s", exc.returncode, command)
        tail = _tail(exc.stderr or exc.stdout or "")
        if tail:
            log.error("Build output (last %d lines):\n%s", _OUTPUT_TAIL_LINES, tail)
        raise

    log.info("Build finished in %.1fs", time.monotonic() - start)
    return proc


def _tail(text: str) -> str:
    return "\n".join(text.rstrip().splitlines()[-_OUTPUT_TAIL_LINES:])
