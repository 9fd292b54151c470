"""
Storage layer: JSON file cache for extraction results.

Components:
    - ResultCache: load/save/invalidate export record lists by key
    - project_cache_key: stable key for a project root and tsconfig pair

Layout:
    <cache_dir>/<key>.json  - JSON array of {name, kind, typeSignature, description}

Package introspection uses the package name as key, so scoped packages
land in a sub-directory (e.g. @scope/name.json). The cache directory
defaults to .tsprobe-cache relative to the working directory.
"""

from tsprobe.core.models import DEFAULT_CACHE_DIR
from tsprobe.core.storage.cache import ResultCache, project_cache_key

__all__ = [
    "DEFAULT_CACHE_DIR",
    "ResultCache",
    "project_cache_key",
]
