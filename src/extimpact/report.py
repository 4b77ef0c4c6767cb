"""Report rows printed on stdout, one per trial.

The output is meant to be redirected into a CSV file::

    Extension Name, Mean (10 runs) (in s), Std Dev (in s), CV (%), Delta (in s)
    Base Theia, 2.345, 0.120, 5.117, -
    "@theia/git": "1.40.0", 2.512, 0.098, 3.901, 0.167
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable

import click

from extimpact.measure import MeasurementSample

PLACEHOLDER = "-"
ERROR_TEXT = "Error while measuring with this extension"


def format_header(runs: int) -> str:
    return f"Extension Name, Mean ({runs} runs) (in s), Std Dev (in s), CV (%), Delta (in s)"


def format_seconds(value: float) -> str:
    """Render a value with exactly three decimals."""
    return f"{value:.3f}"


def coefficient_of_variation(mean: float, stdev: float) -> float:
    """Standard deviation as a percentage of the mean."""
    if mean == 0:
        return math.inf
    return stdev / mean * 100


@dataclass
class ReportRow:
    """One formatted line of the report."""

    label: str
    mean: str
    stdev: str = PLACEHOLDER
    cv: str = PLACEHOLDER
    delta: str = PLACEHOLDER

    @property
    def failed(self) -> bool:
        return self.mean == ERROR_TEXT

    def to_line(self) -> str:
        return ", ".join([self.label, self.mean, self.stdev, self.cv, self.delta])


class ReportEmitter:
    """Formats and prints report rows, tracking the baseline mean.

    If no baseline time is given up front, the first successful
    measurement becomes the baseline for every row after it.
    """

    def __init__(
        self,
        runs: int,
        base_time: float | None = None,
        echo: Callable[[str], None] = click.echo,
    ) -> None:
        self.runs = runs
        self.base_time = round(base_time, 3) if base_time is not None else None
        self.echo = echo

    def header(self) -> str:
        line = format_header(self.runs)
        self.echo(line)
        return line

    def provided_baseline(self, label: str) -> ReportRow:
        """Print the row for a baseline passed in instead of measured."""
        if self.base_time is None:
            raise ValueError("No baseline time was provided")
        row = ReportRow(label=f"{label} (provided)", mean=format_seconds(self.base_time))
        self.echo(row.to_line())
        return row

    def row_for(self, label: str, sample: MeasurementSample) -> ReportRow:
        """Build the row for a sample, establishing the baseline if needed."""
        if sample.failed:
            return ReportRow(label=label, mean=ERROR_TEXT)

        cv = coefficient_of_variation(sample.mean, sample.stdev)
        if self.base_time is None:
            delta = PLACEHOLDER
            self.base_time = sample.mean
        else:
            delta = format_seconds(sample.mean - self.base_time)

        return ReportRow(
            label=label,
            mean=format_seconds(sample.mean),
            stdev=format_seconds(sample.stdev),
            cv=format_seconds(cv),
            delta=delta,
        )

    def emit(self, label: str, sample: MeasurementSample) -> ReportRow:
        row = self.row_for(label, sample)
        self.echo(row.to_line())
        return row
