"""Data models for source analyzer results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DeclarationKind(Enum):
    """Structural kinds of declarations found in source files."""

    FUNCTION = "function"
    CLASS = "class"
    TYPE_ALIAS = "type_alias"
    VARIABLE = "variable"
    INTERFACE = "interface"
    ENUM = "enum"
    NAMESPACE = "namespace"
    EXPORT_SPECIFIER = "export_specifier"


@dataclass
class Parameter:
    """A function parameter and its annotated type, if any."""

    name: str
    type_text: str | None = None


@dataclass
class Declaration:
    """A declaration node, flattened to what rendering needs."""

    kind: DeclarationKind
    name: str
    text: str
    line: int
    file: Path | None = None
    docs: list[str] = field(default_factory=list)
    # Text up to (not including) the body block, modifiers included.
    signature_text: str | None = None
    type_text: str | None = None
    parameters: list[Parameter] = field(default_factory=list)
    return_type: str | None = None
    extends_text: str | None = None


@dataclass
class ExportedSymbol:
    """An exported name and the declarations it resolves to."""

    name: str
    declarations: list[Declaration]


@dataclass
class ParsedModule:
    """Result of analyzing one source file."""

    file: Path | None
    exports: list[ExportedSymbol]
    has_errors: bool = False


def format_function_type(parameters: list[Parameter], return_type: str | None) -> str:
    """Render ``(a: T, b: U) => R``, substituting ``any`` for missing types."""
    params = ", ".join(f"{p.name}: {p.type_text or 'any'}" for p in parameters)
    return f"({params}) => {return_type or 'any'}"
