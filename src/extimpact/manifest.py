"""Application manifest handling.

Covers the three manifest files that coexist during a sweep:

- the *live* manifest the application is built from,
- the *backup*, a pristine copy taken before the first mutation and
  copied back when the sweep ends,
- the *base* manifest, a pre-supplied baseline with no extra extension,
  used to reset the live manifest between trials.

Also discovers candidate extensions from the workspace packages directory.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from extimpact.config import SweepConfig

log = logging.getLogger("extimpact")


# ---------------------------------------------------------------------------
# Extension qualifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ExtensionQualifier:
    """A ``"name": "version"`` pair identifying one extension to test."""

    name: str
    version: str

    @classmethod
    def parse(cls, text: str) -> ExtensionQualifier:
        """Parse a qualifier string.

        Quotes are dropped and the string is split on its *last* colon, so
        names that contain a colon survive.

        Raises:
            ValueError: If there is no colon or the name is empty.
        """
        unquoted = text.replace('"', "")
        idx = unquoted.rfind(":")
        if idx < 0:
            raise ValueError(
                f"Invalid extension qualifier: '{text}'. Expected format: '\"name\": \"version\"'"
            )
        name = unquoted[:idx].strip()
        version = unquoted[idx + 1 :].strip()
        if not name:
            raise ValueError(f"Extension qualifier has an empty name: '{text}'")
        return cls(name=name, version=version)

    def __str__(self) -> str:
        return f'"{self.name}": "{self.version}"'


def enumerate_extensions(
    packages_dir: Path,
    exclude: tuple[str, ...] = ("core",),
) -> list[str]:
    """List one qualifier string per package directory.

    Each subdirectory of *packages_dir* (sorted by name, minus *exclude*)
    must carry a ``package.json`` with ``name`` and ``version``; a missing
    or malformed manifest is not recovered from.
    """
    qualifiers: list[str] = []
    for directory in sorted(p for p in packages_dir.iterdir() if p.is_dir()):
        if directory.name in exclude:
            continue
        data = json.loads((directory / "package.json").read_text(encoding="utf-8"))
        qualifiers.append(str(ExtensionQualifier(name=data["name"], version=data["version"])))
    log.debug("Discovered %d extension(s) in %s", len(qualifiers), packages_dir)
    return qualifiers


# ---------------------------------------------------------------------------
# Mutation
# ---------------------------------------------------------------------------


def apply_extension(manifest_path: Path, qualifier: str | ExtensionQualifier) -> ExtensionQualifier:
    """Add one extension to the live manifest's dependencies.

    An existing dependency with the same name is overwritten.
    """
    if not isinstance(qualifier, ExtensionQualifier):
        qualifier = ExtensionQualifier.parse(qualifier)

    data = json.loads(manifest_path.read_text(encoding="utf-8"))
    data.setdefault("dependencies", {})[qualifier.name] = qualifier.version
    manifest_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    log.debug("Added %s to %s", qualifier, manifest_path)
    return qualifier


def reset_to_base(base_path: Path, manifest_path: Path) -> bool:
    """Overwrite the live manifest with the base manifest.

    Returns True on success.  Copy failures are logged, not raised.
    """
    try:
        shutil.copyfile(base_path, manifest_path)
    except OSError as exc:
        log.error("Failed to reset %s from %s: %s", manifest_path, base_path, exc)
        return False
    return True


# ---------------------------------------------------------------------------
# ManifestWorkspace
# ---------------------------------------------------------------------------


class ManifestWorkspace:
    """Scoped ownership of the live manifest for the duration of a sweep.

    Usage::

        with ManifestWorkspace(config):
            ...  # mutate, build, measure

    Entering backs up the live manifest and resets it to the base
    manifest.  Leaving restores the backup, whatever the exit path.
    ``release()`` does its work at most once, so calling it explicitly
    before the ``with`` block ends is harmless.
    """

    def __init__(self, config: SweepConfig) -> None:
        self.manifest_path = config.app_manifest_path
        self.base_path = config.base_manifest_path
        self.backup_path = config.backup_manifest_path
        self.plugins_path = config.plugins_path
        self._prepared = False
        self._released = False

    def __enter__(self) -> ManifestWorkspace:
        self.prepare()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def prepare(self) -> None:
        """Back up the live manifest and switch it to the base manifest.

        Raises:
            OSError: If the backup cannot be written.  Nothing has been
                mutated at that point, so there is nothing to restore.
        """
        self.backup_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self.manifest_path, self.backup_path)
        self._prepared = True
        log.debug("Backed up %s to %s", self.manifest_path, self.backup_path)

        self.reset()

        if self.plugins_path is not None:
            try:
                self.plugins_path.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                log.error("Failed to create plugins directory %s: %s", self.plugins_path, exc)

    def reset(self) -> bool:
        """Reset the live manifest to the base manifest."""
        return reset_to_base(self.base_path, self.manifest_path)

    def release(self) -> None:
        """Restore the original manifest and delete the backup."""
        if self._released or not self._prepared:
            return
        self._released = True

        if not self.backup_path.exists():
            log.warning("No manifest backup at %s, nothing to restore", self.backup_path)
            return

        try:
            shutil.copyfile(self.backup_path, self.manifest_path)
        except OSError as exc:
            log.error("Failed to restore %s from %s: %s", self.manifest_path, self.backup_path, exc)
            return

        try:
            self.backup_path.unlink()
        except OSError as exc:
            log.error("Failed to remove manifest backup %s: %s", self.backup_path, exc)
            return

        log.debug("Restored %s", self.manifest_path)
