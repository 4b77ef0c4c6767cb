"""Sweep orchestration.

One sweep:
1. Validate configuration (nothing on disk is touched before this)
2. Back up the live manifest and reset it to the base manifest
3. Initial build (full or incremental)
4. Baseline: measure, or print the provided base time
5. For each extension: add it, rebuild, measure, report, reset
6. Restore the original manifest

Trials run strictly one after the other: they share one manifest, one
build output and one application port.
"""

from __future__ import annotations

import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from types import FrameType

from extimpact.build import run_build
from extimpact.config import SweepConfig, validate_config
from extimpact.manifest import ManifestWorkspace, apply_extension, enumerate_extensions
from extimpact.measure import parse_sample, run_measurement
from extimpact.report import ReportEmitter, ReportRow

log = logging.getLogger("extimpact")


class SweepRunner:
    """Runs an extension impact sweep according to a SweepConfig.

    Usage::

        runner = SweepRunner(config)
        rows = runner.run()
    """

    def __init__(self, config: SweepConfig, emitter: ReportEmitter | None = None) -> None:
        self.config = config
        self.emitter = emitter or ReportEmitter(config.runs, base_time=config.base_time)
        self.rows: list[ReportRow] = []

    def run(self) -> list[ReportRow]:
        """Execute the full sweep.

        Returns:
            The report rows in the order they were printed.

        Raises:
            ValueError: If configuration is invalid.
            subprocess.CalledProcessError: If a build fails.
        """
        errors = validate_config(self.config)
        fatal = [e for e in errors if e.severity == "error"]
        for w in (e for e in errors if e.severity == "warning"):
            log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            raise ValueError("\n".join(e.message for e in fatal))

        with _sigterm_as_interrupt(), ManifestWorkspace(self.config) as workspace:
            mode = "full" if self.config.full_build else "incremental"
            log.info("Building application (%s)...", mode)
            run_build(self.config, full=self.config.full_build)

            self.emitter.header()
            if self.emitter.base_time is None:
                self._measure(self.config.baseline_label)
            else:
                self.rows.append(self.emitter.provided_baseline(self.config.baseline_label))

            extensions = list(self.config.extensions) or enumerate_extensions(
                self.config.packages_path,
                exclude=self.config.exclude_packages,
            )
            log.info("Measuring %d extension(s)", len(extensions))

            for idx, qualifier in enumerate(extensions, start=1):
                log.info("[%d/%d] %s", idx, len(extensions), qualifier)
                apply_extension(self.config.app_manifest_path, qualifier)
                run_build(self.config)
                self._measure(qualifier)
                workspace.reset()

        return self.rows

    def _measure(self, label: str) -> ReportRow:
        log.info("Measuring %s (%d runs)...", label, self.config.runs)
        result = run_measurement(self.config)
        sample = parse_sample(result.output, self.config.event_name)
        if sample.failed:
            log.debug("Measurement output for %s:\n%s", label, result.output)
        row = self.emitter.emit(label, sample)
        self.rows.append(row)
        return row


@contextmanager
def _sigterm_as_interrupt() -> Iterator[None]:
    """Treat SIGTERM like Ctrl-C so cleanup runs on both."""

    def handler(signum: int, frame: FrameType | None) -> None:
        raise KeyboardInterrupt

    installed = False
    try:
        previous = signal.signal(signal.SIGTERM, handler)
        installed = True
    except ValueError:
        # Not the main thread.
        pass
    try:
        yield
    finally:
        if installed:
            signal.signal(signal.SIGTERM, previous)
