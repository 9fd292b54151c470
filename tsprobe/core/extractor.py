"""Export extraction: turn analyzed modules into export records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from tsprobe.core.models import ExportKind, ExportRecord
from tsprobe.languages.models import (
    Declaration,
    DeclarationKind,
    ParsedModule,
    format_function_type,
)

UNRESOLVED_REEXPORT_DESCRIPTION = "Re-exported symbol (unresolved)"

_DEFAULT_EXPORT = "default"
_INTERNAL_PREFIX = "_"


class SignatureStyle(Enum):
    """How function and class signatures are rendered.

    DECLARATION keeps the declaration text (``function f(a: T): R``,
    ``class C extends B``) and is used for packages and projects.
    SYNTHESIZED builds a function type (``(a: T) => R``) and ``typeof C``,
    and is used for raw source snippets.
    """

    DECLARATION = "declaration"
    SYNTHESIZED = "synthesized"


class ExportExtractor:
    """Builds deduplicated export records from analyzed modules."""

    def __init__(
        self,
        style: SignatureStyle = SignatureStyle.DECLARATION,
        logger: logging.Logger | None = None,
    ) -> None:
        self._style = style
        self._log = logger or logging.getLogger(__name__)

    def extract(self, module: ParsedModule) -> list[ExportRecord]:
        """Extract export records from one module.

        Default and underscore-prefixed exports are skipped. A symbol with
        several declarations is represented by its first one, and the first
        record for a name wins.
        """
        records: list[ExportRecord] = []
        seen: set[str] = set()
        self._log.debug(
            "Extracting %d export symbols from %s", len(module.exports), module.file or "<source>"
        )

        for symbol in module.exports:
            name = symbol.name
            if name == _DEFAULT_EXPORT or name.startswith(_INTERNAL_PREFIX):
                continue
            if not symbol.declarations:
                continue

            record = self.to_record(name, symbol.declarations[0])
            if record is None:
                self._log.debug("No record for %s (%s)", name, symbol.declarations[0].kind.value)
                continue
            if record.name in seen:
                continue
            seen.add(record.name)
            records.append(record)

        self._log.debug("Extracted %d exports", len(records))
        return records

    def extract_all(self, modules: Iterable[ParsedModule]) -> list[ExportRecord]:
        """Extract each module and concatenate, keeping the first record per name."""
        return merge_records(self.extract(module) for module in modules)

    def to_record(self, name: str, declaration: Declaration) -> ExportRecord | None:
        """Classify a declaration and render its signature.

        Returns None for declaration kinds that are not reported.
        """
        description = declaration.docs[0].strip() if declaration.docs else ""
        kind = declaration.kind

        if kind == DeclarationKind.TYPE_ALIAS:
            return ExportRecord(
                name=name,
                kind=ExportKind.TYPE,
                type_signature=f"type {name} = {declaration.type_text or 'unknown'}",
                description=description,
            )
        if kind == DeclarationKind.FUNCTION:
            return ExportRecord(
                name=name,
                kind=ExportKind.FUNCTION,
                type_signature=self._function_signature(declaration),
                description=description,
            )
        if kind == DeclarationKind.CLASS:
            return ExportRecord(
                name=name,
                kind=ExportKind.CLASS,
                type_signature=self._class_signature(name, declaration),
                description=description,
            )
        if kind == DeclarationKind.VARIABLE:
            return ExportRecord(
                name=name,
                kind=ExportKind.CONST,
                type_signature=f"const {name}: {declaration.type_text or 'any'}",
                description=description,
            )
        if kind == DeclarationKind.EXPORT_SPECIFIER:
            # The analyzer could not follow the re-export; the kind is a guess.
            return ExportRecord(
                name=name,
                kind=ExportKind.TYPE,
                type_signature=f"export {{ {declaration.name} }}",
                description=UNRESOLVED_REEXPORT_DESCRIPTION,
            )
        return None

    def _function_signature(self, declaration: Declaration) -> str:
        if self._style == SignatureStyle.SYNTHESIZED or not declaration.signature_text:
            return format_function_type(declaration.parameters, declaration.return_type)
        return declaration.signature_text

    def _class_signature(self, name: str, declaration: Declaration) -> str:
        if self._style == SignatureStyle.SYNTHESIZED:
            return f"typeof {name}"
        return f"class {name} {declaration.extends_text or ''}".rstrip()


def merge_records(groups: Iterable[Iterable[ExportRecord]]) -> list[ExportRecord]:
    """Concatenate record lists, dropping later records with a name already seen."""
    merged: list[ExportRecord] = []
    seen: set[str] = set()
    for group in groups:
        for record in group:
            if record.name in seen:
                continue
            seen.add(record.name)
            merged.append(record)
    return merged
