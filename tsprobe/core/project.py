"""Project root discovery and tsconfig.json file selection."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from tsprobe.core.exceptions import ProjectConfigError

CONFIG_FILE_NAME = "tsconfig.json"

SOURCE_SUFFIXES = (".ts", ".tsx", ".mts", ".cts")

DEFAULT_INCLUDE = ["**/*"]
DEFAULT_EXCLUDES = ["node_modules", "bower_components", "jspm_packages"]

_MAX_EXTENDS_DEPTH = 10

# Strings are matched first so comment markers inside them survive.
_JSONC_TOKEN = re.compile(
    r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/',
    re.DOTALL,
)
_TRAILING_COMMA = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')

logger = logging.getLogger(__name__)


def locate_project(
    project_path: Path | None = None,
    config_path: Path | None = None,
    cwd: Path | None = None,
) -> tuple[Path, Path]:
    """Determine the project root and its tsconfig.json.

    Without an explicit ``project_path`` the parent of the working directory
    is tried before the working directory itself, since the tool usually
    runs from a sub-directory of the project it inspects.

    Raises:
        ProjectConfigError: If no root or configuration file can be found.
    """
    cwd = (cwd or Path.cwd()).absolute()
    root: Path | None = None
    config: Path | None = None

    if project_path is not None:
        root = Path(project_path).absolute()
        candidate = root / CONFIG_FILE_NAME
        if candidate.is_file():
            config = candidate
    else:
        for directory in (cwd.parent, cwd):
            candidate = directory / CONFIG_FILE_NAME
            if candidate.is_file():
                root, config = directory, candidate
                break

    if config_path is not None:
        config = Path(config_path).absolute()
        if root is None:
            root = config.parent

    if root is None or config is None:
        raise ProjectConfigError(
            "Could not determine project root or find tsconfig.json. "
            "Please specify project_path and/or config_path explicitly."
        )
    if not config.is_file():
        raise ProjectConfigError(f"tsconfig.json not found: {config}")

    return root, config


def read_config(config_path: Path) -> dict[str, Any]:
    """Read a tsconfig.json, which may contain comments and trailing commas.

    Raises:
        ProjectConfigError: If the file cannot be read or parsed.
    """
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProjectConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        data = json.loads(_strip_jsonc(text) or "{}")
    except ValueError as e:
        raise ProjectConfigError(f"Invalid JSON in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ProjectConfigError(f"{config_path} does not contain a JSON object")
    return data


def project_source_files(
    root: Path,
    config_path: Path,
    supports: Callable[[Path], bool] | None = None,
) -> list[Path]:
    """List the source files a tsconfig.json governs.

    Explicit ``files`` come first, followed by ``include`` matches in sorted
    order. ``exclude`` and ``compilerOptions.outDir`` only filter ``include``
    matches, as in tsc. Patterns are relative to the directory holding the
    config file, and ``*``/``?`` never cross a ``/``.

    Args:
        root: Project root, used for logging
        config_path: tsconfig.json to read
        supports: Predicate selecting analyzable files; defaults to a suffix check
    """
    config = _load_with_extends(config_path, depth=0)
    config_dir = config_path.parent
    accept = supports or _has_source_suffix

    files: list[Path] = []
    seen: set[Path] = set()
    for entry in config.get("files") or []:
        path = Path(os.path.normpath(config_dir / entry))
        if path.is_file() and path not in seen:
            seen.add(path)
            files.append(path)

    include = config.get("include")
    if include is None:
        include = [] if config.get("files") else DEFAULT_INCLUDE
    exclude = list(config.get("exclude") or DEFAULT_EXCLUDES)
    out_dir = (config.get("compilerOptions") or {}).get("outDir")
    if isinstance(out_dir, str):
        exclude.append(out_dir)

    include_globs = [_normalize_pattern(p) for p in include]
    include_patterns = [_compile_glob(p) for p in include_globs]
    exclude_patterns = [_compile_glob(_normalize_pattern(p)) for p in exclude]

    pruned = {name for name in DEFAULT_EXCLUDES if name in exclude}
    for base in _walk_bases(config_dir, include_globs):
        for path in _walk_sources(base, pruned, accept):
            relative = os.path.relpath(path, config_dir).replace(os.sep, "/")
            if not any(p.fullmatch(relative) for p in include_patterns):
                continue
            if _excluded(relative, exclude_patterns):
                continue
            if path not in seen:
                seen.add(path)
                files.append(path)

    logger.debug("Project %s governs %d source files", root, len(files))
    return files


def _load_with_extends(config_path: Path, depth: int) -> dict[str, Any]:
    """Merge a relative ``extends`` chain; the extending file wins."""
    config = read_config(config_path)
    base_ref = config.get("extends")
    if not isinstance(base_ref, str) or not base_ref.startswith("."):
        return config
    if depth >= _MAX_EXTENDS_DEPTH:
        raise ProjectConfigError(f"tsconfig extends chain too deep at {config_path}")

    base_path = Path(os.path.normpath(config_path.parent / base_ref))
    if not base_path.name.endswith(".json"):
        base_path = base_path.with_name(base_path.name + ".json")
    if not base_path.is_file():
        logger.warning("Ignoring missing extended config %s", base_path)
        return config

    base = _load_with_extends(base_path, depth + 1)
    merged = {**base, **config}
    merged["compilerOptions"] = {
        **(base.get("compilerOptions") or {}),
        **(config.get("compilerOptions") or {}),
    }
    # Paths in the base config are relative to the base config's directory.
    for key in ("files", "include", "exclude"):
        if key not in config and key in base:
            offset = os.path.relpath(base_path.parent, config_path.parent)
            merged[key] = [os.path.normpath(os.path.join(offset, p)) for p in base[key]]
    return merged


def _strip_jsonc(text: str) -> str:
    def drop_comment(match: re.Match[str]) -> str:
        token = match.group(0)
        return token if token.startswith('"') else ""

    without_comments = _JSONC_TOKEN.sub(drop_comment, text)
    return _TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(2), without_comments)


def _has_source_suffix(path: Path) -> bool:
    return path.name.endswith(SOURCE_SUFFIXES)


def _walk_bases(config_dir: Path, globs: list[str]) -> list[Path]:
    """Directories to walk: the literal prefix of each include pattern."""
    bases: list[Path] = []
    for pattern in globs:
        segments = pattern.split("/")
        prefix = []
        for segment in segments[:-1]:
            if _is_wildcard(segment):
                break
            prefix.append(segment)
        bases.append(Path(os.path.normpath(config_dir.joinpath(*prefix))))

    unique = sorted(set(bases))
    return [b for b in unique if not any(o != b and o in b.parents for o in unique)]


def _walk_sources(base: Path, pruned: set[str], accept: Callable[[Path], bool]) -> list[Path]:
    found = []
    for dirpath, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in pruned)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if name.startswith(".") or not accept(path):
                continue
            found.append(path)
    return found


def _is_wildcard(segment: str) -> bool:
    return any(ch in segment for ch in "*?[")


def _normalize_pattern(pattern: str) -> str:
    pattern = pattern.replace("\\", "/")
    if pattern.startswith("./"):
        pattern = pattern[2:]
    pattern = pattern.rstrip("/")
    # A bare directory includes everything below it.
    if not _is_wildcard(pattern) and "." not in Path(pattern).name:
        pattern = f"{pattern}/**/*" if pattern else "**/*"
    return pattern


def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a tsconfig glob into a regex over ``/``-separated paths."""
    segments = pattern.split("/")
    regex = ""
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            # `**/` also matches zero directories.
            regex += ".*" if last else "(?:[^/]+/)*"
            continue
        for ch in segment:
            if ch == "*":
                regex += "[^/]*"
            elif ch == "?":
                regex += "[^/]"
            else:
                regex += re.escape(ch)
        if not last:
            regex += "/"
    return re.compile(regex)


def _excluded(relative: str, patterns: list[re.Pattern[str]]) -> bool:
    """Whether the file, or any directory above it, matches an exclude pattern."""
    parts = relative.split("/")
    candidates = ["/".join(parts[: i + 1]) for i in range(len(parts))]
    return any(p.fullmatch(c) for p in patterns for c in candidates)
