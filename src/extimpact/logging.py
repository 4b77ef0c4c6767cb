"""Logging setup for extimpact.

Stdout carries nothing but the report rows, so that a sweep can be
redirected straight into a CSV file.  Every log record therefore goes to
stderr (or another stream the caller picks), never stdout.  An optional
file handler always logs at DEBUG level, which includes the raw output of
failed measurements.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO

_LOGGER_NAME = "extimpact"
_FILE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"
# A sweep takes minutes per trial; timestamps show where the time went.
_VERBOSE_CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
_CONSOLE_DATEFMT = "%H:%M:%S"


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    stream: IO[str] | None = None,
) -> logging.Logger:
    """Configure and return the extimpact logger.

    Args:
        verbose: Console at DEBUG level, with timestamps.
        quiet: Console at WARNING level. Ignored if *verbose* is True.
        log_file: If provided, also log everything at DEBUG level to this path.
        stream: Console stream; defaults to the current ``sys.stderr``.

    Returns:
        The configured extimpact logger.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    console = logging.StreamHandler(stream if stream is not None else sys.stderr)
    if verbose:
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT, _CONSOLE_DATEFMT))
    else:
        console.setLevel(logging.WARNING if quiet else logging.INFO)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(fh)

    return logger
