"""Command-line interface for extimpact.

Prints one CSV-style row per trial on stdout; progress and errors go to
stderr.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from extimpact import __version__
from extimpact.logging import setup_logging

log = logging.getLogger("extimpact")


@click.command()
@click.version_option(version=__version__)
@click.option(
    "-b",
    "--base-time",
    type=float,
    default=None,
    help="Pass an existing mean of the base application (skips measuring it).",
)
@click.option(
    "-r",
    "--runs",
    type=int,
    default=None,
    help="The amount of runs of the measurement (default: 10, min: 2).",
)
@click.option(
    "-e",
    "--extensions",
    type=str,
    multiple=True,
    help=(
        "An extension to test, as '\"name\": \"version\"' (repeatable). "
        "Further qualifiers may follow as plain arguments. "
        "Default: every package in the packages folder."
    ),
)
@click.option(
    "-y",
    "--yarn",
    "full_build",
    is_flag=True,
    default=False,
    help="Trigger a full install and build on start.",
)
@click.option(
    "-u",
    "--url",
    type=str,
    default=None,
    help="Custom URL to launch the application at (e.g. with a specific workspace).",
)
@click.option(
    "-c",
    "--config",
    "profile_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML profile with workspace layout and commands.",
)
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Workspace root the manifest and commands are relative to (default: .).",
)
@click.argument("more_extensions", metavar="[EXTENSION]...", nargs=-1)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def main(  # noqa: PLR0913
    base_time: float | None,
    runs: int | None,
    extensions: tuple[str, ...],
    full_build: bool,
    url: str | None,
    profile_path: Path | None,
    root: Path | None,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
    more_extensions: tuple[str, ...],
) -> None:
    """Measure the page-load impact of each extension of a browser application.

    The application is measured once as is, then once per extension added
    to its manifest.  Rows report the mean and standard deviation of the
    Largest Contentful Paint, its coefficient of variation, and the delta
    to the baseline.

    \b
    Examples:
        # Every package in ./packages, 10 runs each
        extimpact > impact.csv

        # Two explicit extensions against a known baseline
        extimpact -b 2.31 -r 5 \\
            -e '"@theia/git": "1.40.0"' '"@theia/terminal": "1.40.0"'
    """
    from extimpact.config import config_from_profile, load_profile
    from extimpact.sweep import SweepRunner

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    cli_overrides: dict[str, object] = {
        "base_time": base_time,
        "runs": runs,
        "extensions": extensions + more_extensions,
        "full_build": full_build or None,
        "url": url,
        "root": root,
    }

    try:
        profile_data = load_profile(profile_path) if profile_path else {}
        config = config_from_profile(profile_data, cli_overrides=cli_overrides)
    except (ValueError, FileNotFoundError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    runner = SweepRunner(config)
    try:
        runner.run()
    except ValueError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nSweep interrupted.", err=True)
        return

    log.info("Sweep complete: %d row(s)", len(runner.rows))
