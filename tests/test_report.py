"""Tests for extimpact.report — report rows and baseline tracking."""

from __future__ import annotations

import math
import unittest

from extimpact.measure import MeasurementSample
from extimpact.report import (
    ERROR_TEXT,
    ReportEmitter,
    ReportRow,
    coefficient_of_variation,
    format_header,
    format_seconds,
)


def _emitter(base_time: float | None = None) -> tuple[ReportEmitter, list[str]]:
    lines: list[str] = []
    return ReportEmitter(5, base_time=base_time, echo=lines.append), lines


class TestFormatting(unittest.TestCase):
    """Tests for the formatting helpers."""

    def test_header(self) -> None:
        self.assertEqual(
            format_header(10),
            "Extension Name, Mean (10 runs) (in s), Std Dev (in s), CV (%), Delta (in s)",
        )

    def test_three_decimals(self) -> None:
        self.assertEqual(format_seconds(2.5), "2.500")
        self.assertEqual(format_seconds(0.12345), "0.123")
        self.assertEqual(format_seconds(-0.5), "-0.500")

    def test_coefficient_of_variation(self) -> None:
        self.assertAlmostEqual(coefficient_of_variation(2.5, 0.1), 4.0)

    def test_coefficient_of_variation_zero_mean(self) -> None:
        self.assertTrue(math.isinf(coefficient_of_variation(0.0, 0.1)))

    def test_row_line(self) -> None:
        row = ReportRow(label="x", mean="1.000", stdev="0.100", cv="10.000", delta="-")
        self.assertEqual(row.to_line(), "x, 1.000, 0.100, 10.000, -")


class TestReportEmitter(unittest.TestCase):
    """Tests for ReportEmitter."""

    def test_header_uses_runs(self) -> None:
        emitter, lines = _emitter()
        emitter.header()
        self.assertEqual(lines, [format_header(5)])

    def test_provided_baseline(self) -> None:
        emitter, lines = _emitter(base_time=2.0)
        emitter.provided_baseline("Base Theia")
        self.assertEqual(lines, ["Base Theia (provided), 2.000, -, -, -"])

    def test_provided_baseline_requires_base_time(self) -> None:
        emitter, _ = _emitter()
        with self.assertRaises(ValueError):
            emitter.provided_baseline("Base Theia")

    def test_provided_base_time_is_rounded(self) -> None:
        emitter, lines = _emitter(base_time=2.0004)
        emitter.emit("ext", MeasurementSample(2.5, 0.1))
        self.assertEqual(lines, ["ext, 2.500, 0.100, 4.000, 0.500"])

    def test_delta_against_provided_baseline(self) -> None:
        emitter, lines = _emitter(base_time=2.0)
        emitter.emit('"a": "1.0.0"', MeasurementSample(2.5, 0.1))
        emitter.emit('"b": "2.0.0"', MeasurementSample(1.75, 0.07))
        self.assertEqual(
            lines,
            [
                '"a": "1.0.0", 2.500, 0.100, 4.000, 0.500',
                '"b": "2.0.0", 1.750, 0.070, 4.000, -0.250',
            ],
        )

    def test_first_success_becomes_baseline(self) -> None:
        emitter, lines = _emitter()
        emitter.emit("Base Theia", MeasurementSample(2.0, 0.2))
        emitter.emit("a", MeasurementSample(2.25, 0.09))
        self.assertEqual(emitter.base_time, 2.0)
        self.assertEqual(
            lines,
            [
                "Base Theia, 2.000, 0.200, 10.000, -",
                "a, 2.250, 0.090, 4.000, 0.250",
            ],
        )

    def test_failed_sample_is_error_row(self) -> None:
        emitter, lines = _emitter(base_time=2.0)
        row = emitter.emit("a", MeasurementSample(math.nan, 0.1))
        self.assertTrue(row.failed)
        self.assertEqual(lines, [f"a, {ERROR_TEXT}, -, -, -"])

    def test_failure_does_not_set_baseline(self) -> None:
        emitter, lines = _emitter()
        emitter.emit("Base Theia", MeasurementSample(math.nan, math.nan))
        self.assertIsNone(emitter.base_time)
        emitter.emit("a", MeasurementSample(3.0, 0.3))
        emitter.emit("b", MeasurementSample(3.5, 0.35))
        self.assertEqual(
            lines,
            [
                f"Base Theia, {ERROR_TEXT}, -, -, -",
                "a, 3.000, 0.300, 10.000, -",
                "b, 3.500, 0.350, 10.000, 0.500",
            ],
        )

    def test_repeated_samples_format_identically(self) -> None:
        emitter, lines = _emitter(base_time=1.0)
        for _ in range(3):
            emitter.emit("same", MeasurementSample(1.2346, 0.0617))
        self.assertEqual(len(set(lines)), 1)
        self.assertEqual(lines[0], "same, 1.235, 0.062, 4.998, 0.235")


if __name__ == "__main__":
    unittest.main()
