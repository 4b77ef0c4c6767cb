"""Sweep configuration and YAML profile loading.

Handles:
- The resolved, immutable configuration of one sweep (``SweepConfig``).
- Loading sweep profiles from YAML files.
- Merging CLI options over profile values.
- Validating the final configuration before anything on disk is touched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

DEFAULT_EVENT = "Largest Contentful Paint (LCP)"


# ---------------------------------------------------------------------------
# SweepConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SweepConfig:
    """Resolved configuration for an extension impact sweep."""

    # Measurement control
    runs: int = 10
    base_time: float | None = None
    extensions: tuple[str, ...] = ()
    full_build: bool = False
    url: str | None = None

    # Workspace layout (relative paths resolve against root)
    root: Path = field(default_factory=lambda: Path("."))
    app_manifest: str = "examples/browser/package.json"
    base_manifest: str = "scripts/performance/base-package.json"
    backup_manifest: str = "scripts/performance/backup-package.json"
    packages_dir: str = "packages"
    exclude_packages: tuple[str, ...] = ("core",)
    plugins_dir: str | None = "noPlugins"

    # External commands
    measure_dir: str = "scripts/performance"
    measure_command: str = (
        "node measure-performance.js --name {name} --folder {folder} --runs {runs}"
    )
    measure_name: str = "Startup"
    measure_folder: str = "script"
    event_name: str = DEFAULT_EVENT
    start_command: str = "yarn --cwd examples/browser start"
    build_command: str = "yarn browser build"
    full_build_command: str = "yarn build"

    # Reporting
    baseline_label: str = "Base Theia"

    # Process supervision
    poll_interval: float = 0.5  # Seconds between child process polls
    kill_grace: float = 5.0  # Seconds between SIGTERM and SIGKILL

    def resolve(self, relative: str) -> Path:
        """Resolve a workspace-relative path against ``root``."""
        return self.root / relative

    @property
    def app_manifest_path(self) -> Path:
        return self.resolve(self.app_manifest)

    @property
    def base_manifest_path(self) -> Path:
        return self.resolve(self.base_manifest)

    @property
    def backup_manifest_path(self) -> Path:
        return self.resolve(self.backup_manifest)

    @property
    def packages_path(self) -> Path:
        return self.resolve(self.packages_dir)

    @property
    def plugins_path(self) -> Path | None:
        return self.resolve(self.plugins_dir) if self.plugins_dir else None

    @property
    def measure_path(self) -> Path:
        return self.resolve(self.measure_dir)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: SweepConfig) -> list[ValidationError]:
    """Validate a sweep configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.runs < 2:
        errors.append(ValidationError(field="runs", message="--runs must be at least 2"))

    if config.base_time is not None and config.base_time <= 0:
        errors.append(
            ValidationError(
                field="base_time",
                message=f"Base time should be positive (got {config.base_time}).",
                severity="warning",
            )
        )

    if not config.app_manifest_path.is_file():
        errors.append(
            ValidationError(
                field="app_manifest",
                message=f"Application manifest does not exist: {config.app_manifest_path}",
            )
        )

    if not config.base_manifest_path.is_file():
        errors.append(
            ValidationError(
                field="base_manifest",
                message=f"Base manifest does not exist: {config.base_manifest_path}",
            )
        )

    # Only needed when extensions have to be discovered.
    if not config.extensions and not config.packages_path.is_dir():
        errors.append(
            ValidationError(
                field="packages_dir",
                message=(
                    f"Packages directory does not exist: {config.packages_path}. "
                    "Pass --extensions to skip discovery."
                ),
            )
        )

    from extimpact.manifest import ExtensionQualifier

    for qualifier in config.extensions:
        try:
            ExtensionQualifier.parse(qualifier)
        except ValueError as exc:
            errors.append(ValidationError(field="extensions", message=str(exc)))

    for name in ("measure_command", "start_command", "build_command", "full_build_command"):
        if not getattr(config, name).strip():
            errors.append(ValidationError(field=name, message=f"{name} must not be empty."))

    if config.poll_interval <= 0:
        errors.append(
            ValidationError(
                field="poll_interval",
                message=f"Poll interval must be positive (got {config.poll_interval}).",
            )
        )

    if config.kill_grace < 0:
        errors.append(
            ValidationError(
                field="kill_grace",
                message=f"Kill grace period cannot be negative (got {config.kill_grace}).",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a sweep profile from a YAML file.

    Profile format::

        runs: 10
        full_build: true
        root: ../..
        extensions:
          - '"@theia/git": "1.40.0"'
        start_command: "yarn --cwd examples/browser start"

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    data = yaml.safe_load(profile_path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


_TUPLE_KEYS = ("extensions", "exclude_packages")


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> SweepConfig:
    """Build a SweepConfig from a parsed profile and CLI overrides.

    CLI overrides whose value is ``None`` (or an empty tuple, for
    extensions) leave the profile value in place.

    Raises:
        ValueError: On unknown profile keys or badly typed list values.
    """
    known = {f.name for f in fields(SweepConfig)}
    unknown = sorted(set(profile_data) - known)
    if unknown:
        raise ValueError(
            f"Unknown profile key(s): {', '.join(unknown)}. Valid keys: {', '.join(sorted(known))}"
        )

    values: dict[str, Any] = dict(profile_data)
    for key, value in (cli_overrides or {}).items():
        if value is None or value == ():
            continue
        values[key] = value

    for key in _TUPLE_KEYS:
        if key in values:
            raw = values[key]
            if isinstance(raw, str) or not isinstance(raw, (list, tuple)):
                raise ValueError(f"'{key}' must be a list of strings")
            values[key] = tuple(str(v) for v in raw)

    if "root" in values:
        values["root"] = Path(values["root"])
    if values.get("base_time") is not None:
        values["base_time"] = float(values["base_time"])
    if "runs" in values:
        values["runs"] = int(values["runs"])

    return SweepConfig(**values)
