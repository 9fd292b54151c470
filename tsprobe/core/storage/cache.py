"""JSON file cache for extracted export records."""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path

from tsprobe.core.models import DEFAULT_CACHE_DIR, ExportRecord

_SUFFIX = ".json"


class ResultCache:
    """Stores one JSON array of export records per key.

    Entries live at ``<base_dir>/<cache_dir>/<key>.json`` and are never
    invalidated automatically: delete them with :meth:`invalidate` or
    :meth:`clear` when the underlying package changes.
    """

    def __init__(
        self,
        cache_dir: str | Path = DEFAULT_CACHE_DIR,
        base_dir: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._root = (base_dir or Path.cwd()) / cache_dir
        self._log = logger or logging.getLogger(__name__)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        """Get the file path for a cache key.

        Raises:
            ValueError: If the key would place the entry outside the cache directory.
        """
        path = self._root / f"{key}{_SUFFIX}"
        root = self._root.resolve()
        if not key or root not in path.resolve().parents:
            raise ValueError(f"Invalid cache key: {key!r}")
        return path

    def load(self, key: str) -> list[ExportRecord] | None:
        """Load cached records, or None on a miss.

        A corrupt entry counts as a miss.
        """
        try:
            path = self.path_for(key)
        except ValueError as e:
            self._log.warning("Not reading cache: %s", e)
            return None
        if not path.is_file():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, list):
                raise ValueError("cache entry is not a JSON array")
            records = [ExportRecord.from_dict(item) for item in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            self._log.warning("Failed to load cache for %s: %s", key, e)
            return None

        self._log.debug("Loaded %d exports from cache: %s", len(records), path)
        return records

    def save(self, key: str, records: list[ExportRecord]) -> bool:
        """Write records for a key, replacing any previous entry.

        Returns False if the entry could not be written.
        """
        try:
            path = self.path_for(key)
        except ValueError as e:
            self._log.warning("Not writing cache: %s", e)
            return False
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            self._log.warning("Failed to save cache for %s: %s", key, e)
            return False

        self._log.debug("Saved %d exports to cache: %s", len(records), path)
        return True

    def invalidate(self, key: str) -> bool:
        """Delete the entry for a key. Returns True if one existed."""
        try:
            self.path_for(key).unlink()
        except (FileNotFoundError, ValueError):
            return False
        return True

    def clear(self) -> int:
        """Delete every entry and return how many were removed."""
        if not self._root.is_dir():
            return 0
        removed = 0
        for path in sorted(self._root.rglob(f"*{_SUFFIX}")):
            path.unlink()
            removed += 1
        return removed


def project_cache_key(project_root: Path, config_path: Path) -> str:
    """Derive a collision-free cache key for a project and its tsconfig."""
    raw = f"{project_root}{config_path}".encode()
    return "project-" + base64.urlsafe_b64encode(raw).decode("ascii")
