"""Page-load measurement.

Runs the external measurement utility next to the application, captures
the utility's output, and scrapes the aggregated mean and standard
deviation out of it.  The utility is expected to print lines such as::

    [MEAN] Largest Contentful Paint (LCP): 2.345 seconds
    [STDEV] Largest Contentful Paint (LCP): 0.123 seconds
"""

from __future__ import annotations

import logging
import math
import shlex
import subprocess
import tempfile
import time
from dataclasses import dataclass

from extimpact.config import DEFAULT_EVENT, SweepConfig
from extimpact.process import spawn, terminate

log = logging.getLogger("extimpact")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass
class MeasurementSample:
    """Mean and standard deviation of one trial, in seconds."""

    mean: float
    stdev: float

    @property
    def failed(self) -> bool:
        """True if either value could not be read from the output."""
        return math.isnan(self.mean) or math.isnan(self.stdev)


def mean_marker(event: str = DEFAULT_EVENT) -> str:
    return f"[MEAN] {event}:"


def stdev_marker(event: str = DEFAULT_EVENT) -> str:
    return f"[STDEV] {event}:"


def parse_measurement(output: str, marker: str) -> float:
    """Extract the number printed after the last occurrence of *marker*.

    The utility may print the marker more than once; only the final
    aggregate counts.  The value runs from one character past the marker
    up to the space before the next ``seconds``.

    Returns:
        The parsed value, or ``NaN`` if the marker or the unit is missing
        or the text in between is not a number.
    """
    idx = output.rfind(marker)
    if idx < 0:
        return math.nan

    first = idx + len(marker) + 1
    last = output.find("seconds", first)
    if last < 0:
        return math.nan

    try:
        return float(output[first : last - 1])
    except ValueError:
        return math.nan


def parse_sample(output: str, event: str = DEFAULT_EVENT) -> MeasurementSample:
    """Parse both markers for *event* out of the captured output."""
    return MeasurementSample(
        mean=parse_measurement(output, mean_marker(event)),
        stdev=parse_measurement(output, stdev_marker(event)),
    )


# ---------------------------------------------------------------------------
# Running
# ---------------------------------------------------------------------------


@dataclass
class MeasurementRun:
    """Outcome of one supervised measurement."""

    exit_code: int
    output: str
    app_exited_first: bool = False


def build_measure_command(config: SweepConfig) -> str:
    """Format the measurement utility command line for *config*."""
    command = config.measure_command.format(
        name=config.measure_name,
        folder=config.measure_folder,
        runs=config.runs,
    )
    if config.url:
        command += f" --url {shlex.quote(config.url)}"
    return command


def run_measurement(config: SweepConfig) -> MeasurementRun:
    """Measure the application once with the current build.

    Starts the measurement utility and the application side by side and
    blocks until the utility exits.  The application's own output is
    discarded so it cannot interleave with the utility's log lines.  Both
    process groups are terminated before returning, including when the
    wait is interrupted.
    """
    command = build_measure_command(config)

    with tempfile.TemporaryFile(
        mode="w+", encoding="utf-8", errors="replace", prefix="extimpact-measure-"
    ) as out:
        measure = spawn(
            command,
            cwd=config.measure_path,
            stdout=out,
            stderr=subprocess.STDOUT,
        )
        app: subprocess.Popen[str] | None = None
        try:
            app = spawn(
                config.start_command,
                cwd=config.root,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            exit_code, app_exited_first = _supervise(measure, app, config.poll_interval)
        finally:
            for proc in (measure, app):
                if proc is not None:
                    terminate(proc, grace=config.kill_grace)

        out.seek(0)
        output = out.read()

    if app_exited_first:
        log.warning(
            "Application exited with code %s before the measurement finished",
            app.returncode if app is not None else "?",
        )
    elif exit_code != 0:
        log.warning("Measurement utility exited with code %d", exit_code)

    return MeasurementRun(exit_code=exit_code, output=output, app_exited_first=app_exited_first)


def _supervise(
    measure: subprocess.Popen[str],
    app: subprocess.Popen[str],
    poll_interval: float,
) -> tuple[int, bool]:
    """Wait for the measurement utility to finish.

    Returns the utility's exit code (``-1`` if it had to be stopped) and
    whether the application exited first.
    """
    while True:
        code = measure.poll()
        if code is not None:
            return code, False
        if app.poll() is not None:
            return -1, True
        time.sleep(poll_interval)
