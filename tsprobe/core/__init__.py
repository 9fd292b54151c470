"""
Core module: data models, exceptions, resolution, extraction and storage.

This module provides the building blocks behind the introspector:

Models (models.py):
    - ExportRecord: One exported symbol (name, kind, signature, description)
    - ExportKind: function, class, type or const
    - PackageLocation: Where a package's manifest lives
    - IntrospectionOptions/ProjectOptions: Search, filter and cache settings

Exceptions (exceptions.py):
    - TsprobeError: Base exception for all tsprobe errors
    - ParseError: Source file could not be read
    - ResolutionError: Package or declaration files not found
    - ProjectConfigError: Project root or tsconfig.json not found
    - InvalidSearchPatternError: Search term is not a valid regex

Resolution (resolver.py), extraction (extractor.py), filtering (filters.py)
and storage (storage/) are composed by the Introspector in introspector.py.
"""

from tsprobe.core.exceptions import (
    DeclarationsNotFoundError,
    InvalidSearchPatternError,
    ManifestError,
    PackageNotFoundError,
    ParseError,
    ProjectConfigError,
    ResolutionError,
    TsprobeError,
)
from tsprobe.core.filters import filter_records
from tsprobe.core.models import (
    DEFAULT_CACHE_DIR,
    ExportKind,
    ExportRecord,
    IntrospectionOptions,
    PackageLocation,
    ProjectOptions,
)
from tsprobe.core.storage import ResultCache, project_cache_key

__all__ = [
    # Models
    "DEFAULT_CACHE_DIR",
    "ExportKind",
    "ExportRecord",
    "IntrospectionOptions",
    "PackageLocation",
    "ProjectOptions",
    # Exceptions
    "TsprobeError",
    "ParseError",
    "ResolutionError",
    "PackageNotFoundError",
    "DeclarationsNotFoundError",
    "ManifestError",
    "ProjectConfigError",
    "InvalidSearchPatternError",
    # Filtering and storage
    "filter_records",
    "ResultCache",
    "project_cache_key",
]
