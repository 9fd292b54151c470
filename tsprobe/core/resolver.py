"""Package and declaration file resolution."""

from __future__ import annotations

import glob
import json
import logging
import os
import re
from collections.abc import Sequence
from pathlib import Path

from tsprobe.core.exceptions import (
    DeclarationsNotFoundError,
    ManifestError,
    PackageNotFoundError,
)
from tsprobe.core.models import PackageLocation

MANIFEST_NAME = "package.json"
DECLARATION_SUFFIX = ".d.ts"
DEFAULT_DECLARATION_FILE = "index.d.ts"

_DEPENDENCY_DIR = "node_modules"
_STORE_DIR = ".pnpm"
_NATURAL_CHUNK = re.compile(r"(\d+)")


def _natural_key(path: Path) -> list[tuple[int, int | str]]:
    """Sort key treating digit runs as numbers (1.10.0 after 1.9.0)."""
    return [
        (0, int(part)) if part.isdigit() else (1, part)
        for part in _NATURAL_CHUNK.split(path.name)
        if part
    ]


class PackageResolver:
    """Locates a package's manifest and its type declaration files.

    Lookup order:
    1. Node-style resolution from the working directory (node_modules in the
       directory and its ancestors, then NODE_PATH)
    2. node_modules of each search root
    3. The pnpm store (node_modules/.pnpm) of each search root
    4. <root>/<package>/package.json for each explicit search path
    """

    def __init__(
        self,
        search_paths: Sequence[Path | str] = (),
        cwd: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cwd = (cwd or Path.cwd()).absolute()
        self._search_paths = [Path(p).absolute() for p in search_paths]
        self._log = logger or logging.getLogger(__name__)

    @property
    def roots(self) -> list[Path]:
        """The working directory followed by the explicit search paths."""
        roots = [self._cwd]
        for path in self._search_paths:
            if path not in roots:
                roots.append(path)
        return roots

    def resolve(self, package_name: str) -> PackageLocation:
        """Find the manifest of an installed package.

        Raises:
            PackageNotFoundError: If no candidate manifest exists.
            ManifestError: If the manifest found is not a JSON object.
        """
        self._log.debug("Finding %s for %s", MANIFEST_NAME, package_name)

        manifest_path = self._node_resolve(package_name)
        if manifest_path is not None:
            self._log.debug("Found %s via module resolution", manifest_path)
        else:
            for candidate in self.candidate_manifests(package_name):
                self._log.debug("Checking path: %s", candidate)
                if candidate.is_file():
                    manifest_path = candidate
                    self._log.debug("Found %s", manifest_path)
                    break

        if manifest_path is None:
            raise PackageNotFoundError(
                f"Could not find {MANIFEST_NAME} for {package_name} in any search paths"
            )

        # pnpm links packages into node_modules; relative entries resolve from the real dir.
        package_dir = manifest_path.parent.resolve()
        self._log.debug("Real package directory: %s", package_dir)

        manifest = _read_manifest(manifest_path)
        location = PackageLocation(
            manifest_path=manifest_path.absolute(),
            package_dir=package_dir,
            manifest=manifest,
        )
        self._log.debug(
            "Manifest parsed: name=%s version=%s types=%s typings=%s exports=%s",
            location.name,
            location.version,
            manifest.get("types"),
            manifest.get("typings"),
            "exports" in manifest,
        )
        return location

    def candidate_manifests(self, package_name: str) -> list[Path]:
        """List fallback manifest locations in probing order."""
        roots = self.roots
        candidates = [root / _DEPENDENCY_DIR / package_name / MANIFEST_NAME for root in roots]

        store_keys = [package_name]
        if "/" in package_name:
            store_keys.append(package_name.replace("/", "+"))
        for root in roots:
            store = root / _DEPENDENCY_DIR / _STORE_DIR
            for key in store_keys:
                candidates.extend(self._store_matches(store, key, package_name))
                candidates.append(store / key / _DEPENDENCY_DIR / package_name / MANIFEST_NAME)

        candidates.extend(path / package_name / MANIFEST_NAME for path in self._search_paths)
        return candidates

    def find_declaration_files(self, location: PackageLocation) -> list[Path]:
        """List the declaration files to analyze for a package.

        The entry comes from ``types``, ``typings`` or ``exports["."].types``,
        defaulting to index.d.ts. When that file is missing, every .d.ts
        file next to where the entry should be (or in the package root) is
        returned instead.

        Raises:
            DeclarationsNotFoundError: If no declaration file can be found.
        """
        manifest = location.manifest
        entry = _types_entry(manifest)
        self._log.debug("Types entry from manifest: %s", entry)
        if entry is None:
            entry = DEFAULT_DECLARATION_FILE
            self._log.debug("Using default types path: %s", entry)

        # The entry is authored relative to where package.json physically sits.
        manifest_dir = location.manifest_path.parent
        main_path = Path(os.path.normpath(manifest_dir / entry))
        if main_path.is_file():
            self._log.debug("Main declaration file exists: %s", main_path)
            return [main_path]

        self._log.debug("Declaration file not found at %s, scanning package", main_path)
        package_dir = location.package_dir
        entry_dir = Path(os.path.normpath(package_dir / entry)).parent
        search_dirs = [entry_dir] if entry_dir != package_dir else []
        search_dirs.append(package_dir)

        for directory in search_dirs:
            if not directory.is_dir() or package_dir not in (directory, *directory.parents):
                continue
            files = sorted(
                p for p in directory.iterdir() if p.name.endswith(DECLARATION_SUFFIX) and p.is_file()
            )
            if files:
                self._log.debug("Found %d declaration files in %s", len(files), directory)
                return files

        raise DeclarationsNotFoundError(
            f"No type definition files ({DECLARATION_SUFFIX}) found in package directory: "
            f"{package_dir}"
        )

    def _node_resolve(self, package_name: str) -> Path | None:
        """Resolve ``<package>/package.json`` the way Node's require does."""
        directories = [self._cwd, *self._cwd.parents]
        for directory in directories:
            if directory.name == _DEPENDENCY_DIR:
                continue
            candidate = directory / _DEPENDENCY_DIR / package_name / MANIFEST_NAME
            if candidate.is_file():
                return candidate

        for entry in os.environ.get("NODE_PATH", "").split(os.pathsep):
            if not entry:
                continue
            candidate = Path(entry) / package_name / MANIFEST_NAME
            if candidate.is_file():
                return candidate.absolute()
        return None

    def _store_matches(self, store: Path, key: str, package_name: str) -> list[Path]:
        """Versioned pnpm store entries (``<key>@<version>``), newest first."""
        if not store.is_dir():
            return []
        pattern = str(store / f"{glob.escape(key)}@*")
        entries = sorted((Path(p) for p in glob.glob(pattern)), key=_natural_key, reverse=True)
        return [entry / _DEPENDENCY_DIR / package_name / MANIFEST_NAME for entry in entries]


def _read_manifest(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} does not contain a JSON object")
    return data


def _types_entry(manifest: dict) -> str | None:
    """The declared declaration entry: types, typings, then exports["."].types."""
    for key in ("types", "typings"):
        value = manifest.get(key)
        if isinstance(value, str) and value:
            return value

    exports = manifest.get("exports")
    if isinstance(exports, dict):
        root_export = exports.get(".")
        if isinstance(root_export, dict):
            value = root_export.get("types")
            if isinstance(value, str) and value:
                return value
    return None
