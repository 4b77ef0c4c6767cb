"""Tests for extimpact.logging — console and file handlers."""

from __future__ import annotations

import io
import logging
import re
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from extimpact.logging import setup_logging


class TestSetupLogging(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.stream = io.StringIO()

    def tearDown(self) -> None:
        logger = logging.getLogger("extimpact")
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        shutil.rmtree(self.tmpdir)

    def test_info_reaches_console(self) -> None:
        logger = setup_logging(stream=self.stream)
        logger.info("Building application (incremental)...")
        logger.debug("Starting in /tmp: yarn browser build")
        self.assertEqual(self.stream.getvalue(), "INFO     Building application (incremental)...\n")

    def test_quiet_keeps_warnings_only(self) -> None:
        logger = setup_logging(quiet=True, stream=self.stream)
        logger.info("Measuring Base Theia (10 runs)...")
        logger.warning("Measurement utility exited with code 1")
        self.assertNotIn("Measuring", self.stream.getvalue())
        self.assertIn("exited with code 1", self.stream.getvalue())

    def test_verbose_shows_debug_with_time(self) -> None:
        logger = setup_logging(verbose=True, quiet=True, stream=self.stream)
        logger.debug("Added a to package.json")
        self.assertRegex(
            self.stream.getvalue(),
            re.compile(r"^\d\d:\d\d:\d\d DEBUG    Added a to package\.json$", re.M),
        )

    def test_defaults_to_stderr_not_stdout(self) -> None:
        fake_stdout = io.StringIO()
        with patch("sys.stderr", self.stream), patch("sys.stdout", fake_stdout):
            logger = setup_logging()
            logger.info("Sweep complete: 3 row(s)")
        self.assertIn("Sweep complete", self.stream.getvalue())
        self.assertEqual(fake_stdout.getvalue(), "")

    def test_log_file_gets_debug(self) -> None:
        log_file = Path(self.tmpdir) / "sweep.log"
        logger = setup_logging(quiet=True, log_file=log_file, stream=self.stream)
        logger.debug("Measurement output for a:\nno markers")
        for handler in logger.handlers:
            handler.flush()
        self.assertIn("DEBUG", log_file.read_text(encoding="utf-8"))
        self.assertEqual(self.stream.getvalue(), "")

    def test_reconfigure_replaces_handlers(self) -> None:
        setup_logging(stream=io.StringIO())
        logger = setup_logging(stream=self.stream)
        self.assertEqual(len(logger.handlers), 1)


if __name__ == "__main__":
    unittest.main()
