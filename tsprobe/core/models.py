"""Data models for tsprobe."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

DEFAULT_CACHE_DIR = ".tsprobe-cache"


class ExportKind(Enum):
    """Kinds of exported symbols reported in results."""

    FUNCTION = "function"
    CLASS = "class"
    TYPE = "type"
    CONST = "const"


@dataclass
class ExportRecord:
    """One public symbol of a module."""

    name: str
    kind: ExportKind
    type_signature: str
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to the JSON shape used by the cache and the CLI."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "typeSignature": self.type_signature,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExportRecord:
        """Create an ExportRecord from its JSON shape.

        Raises:
            KeyError: If a required field is missing
            TypeError: If a field is not a string
            ValueError: If the kind is unknown
        """
        if not isinstance(data, dict):
            raise TypeError(f"record must be an object, got {type(data).__name__}")
        fields = {key: data[key] for key in ("name", "kind", "typeSignature")}
        fields["description"] = data.get("description", "")
        for key, value in fields.items():
            if not isinstance(value, str):
                raise TypeError(f"{key} must be a string, got {type(value).__name__}")

        return cls(
            name=fields["name"],
            kind=ExportKind(fields["kind"]),
            type_signature=fields["typeSignature"],
            description=fields["description"],
        )


@dataclass
class PackageLocation:
    """Where a package's manifest was found."""

    manifest_path: Path
    package_dir: Path
    manifest: dict[str, Any]

    @property
    def name(self) -> str | None:
        value = self.manifest.get("name")
        return value if isinstance(value, str) else None

    @property
    def version(self) -> str | None:
        value = self.manifest.get("version")
        return value if isinstance(value, str) else None


@dataclass
class IntrospectionOptions:
    """Options for introspecting an installed package."""

    search_paths: list[Path] = field(default_factory=list)
    search_term: str | None = None
    cache: bool = False
    cache_dir: str = DEFAULT_CACHE_DIR
    limit: int | None = None


@dataclass
class ProjectOptions:
    """Options for introspecting a whole TypeScript project."""

    project_path: Path | None = None
    config_path: Path | None = None
    search_term: str | None = None
    cache: bool = False
    cache_dir: str = DEFAULT_CACHE_DIR
    limit: int | None = None
