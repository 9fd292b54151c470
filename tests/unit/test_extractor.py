"""Tests for export classification and signature rendering."""

from pathlib import Path

import pytest

from tsprobe.core.extractor import (
    UNRESOLVED_REEXPORT_DESCRIPTION,
    ExportExtractor,
    SignatureStyle,
    merge_records,
)
from tsprobe.core.models import ExportKind, ExportRecord
from tsprobe.languages.models import (
    Declaration,
    DeclarationKind,
    ExportedSymbol,
    Parameter,
    ParsedModule,
)


def declaration(kind: DeclarationKind, name: str, **kwargs) -> Declaration:
    return Declaration(kind=kind, name=name, text="", line=1, file=Path("index.d.ts"), **kwargs)


@pytest.fixture
def function_decl() -> Declaration:
    return declaration(
        DeclarationKind.FUNCTION,
        "fetch",
        signature_text="export declare function fetch(url: string, init?: Init): Promise<Response>",
        parameters=[Parameter("url", "string"), Parameter("init?", "Init")],
        return_type="Promise<Response>",
        docs=["  Fetch a resource.  "],
    )


class TestToRecord:
    """Tests for rendering single declarations."""

    def test_function_declaration_style(self, function_decl: Declaration) -> None:
        """Test that package extraction keeps the declaration text."""
        record = ExportExtractor().to_record("fetch", function_decl)

        assert record == ExportRecord(
            "fetch",
            ExportKind.FUNCTION,
            "export declare function fetch(url: string, init?: Init): Promise<Response>",
            "Fetch a resource.",
        )

    def test_function_synthesized_style(self, function_decl: Declaration) -> None:
        """Test that snippet extraction builds a function type."""
        record = ExportExtractor(style=SignatureStyle.SYNTHESIZED).to_record("fetch", function_decl)

        assert record is not None
        assert record.type_signature == "(url: string, init?: Init) => Promise<Response>"

    def test_function_without_text_is_synthesized(self) -> None:
        """Test the fallback when no declaration text is available."""
        decl = declaration(DeclarationKind.FUNCTION, "noop", parameters=[Parameter("x")])

        record = ExportExtractor().to_record("noop", decl)

        assert record is not None
        assert record.type_signature == "(x: any) => any"

    def test_class_variants(self) -> None:
        """Test both class renderings."""
        decl = declaration(DeclarationKind.CLASS, "Child", extends_text="extends Parent<T>")
        plain = declaration(DeclarationKind.CLASS, "Plain")

        assert ExportExtractor().to_record("Child", decl).type_signature == "class Child extends Parent<T>"
        assert ExportExtractor().to_record("Plain", plain).type_signature == "class Plain"
        synthesized = ExportExtractor(style=SignatureStyle.SYNTHESIZED)
        assert synthesized.to_record("Child", decl).type_signature == "typeof Child"

    def test_type_alias_fallback(self) -> None:
        """Test that an unrenderable alias becomes unknown."""
        decl = declaration(DeclarationKind.TYPE_ALIAS, "Opaque")

        assert ExportExtractor().to_record("Opaque", decl).type_signature == "type Opaque = unknown"

    def test_variable_fallback(self) -> None:
        """Test that an untyped variable becomes any."""
        decl = declaration(DeclarationKind.VARIABLE, "thing")

        record = ExportExtractor().to_record("thing", decl)

        assert record.kind == ExportKind.CONST
        assert record.type_signature == "const thing: any"

    def test_export_specifier(self) -> None:
        """Test the unresolved re-export guess."""
        decl = declaration(DeclarationKind.EXPORT_SPECIFIER, "Thing")

        record = ExportExtractor().to_record("Alias", decl)

        assert record == ExportRecord(
            "Alias", ExportKind.TYPE, "export { Thing }", UNRESOLVED_REEXPORT_DESCRIPTION
        )

    @pytest.mark.parametrize(
        "kind", [DeclarationKind.INTERFACE, DeclarationKind.ENUM, DeclarationKind.NAMESPACE]
    )
    def test_other_kinds_excluded(self, kind: DeclarationKind) -> None:
        """Test that other declaration kinds produce no record."""
        assert ExportExtractor().to_record("X", declaration(kind, "X")) is None


class TestExtract:
    """Tests for extracting whole modules."""

    def test_skips_default_internal_and_empty(self, function_decl: Declaration) -> None:
        """Test the exclusion rules."""
        module = ParsedModule(
            file=Path("index.d.ts"),
            exports=[
                ExportedSymbol("default", [function_decl]),
                ExportedSymbol("_private", [function_decl]),
                ExportedSymbol("empty", []),
                ExportedSymbol("fetch", [function_decl]),
            ],
        )

        assert [r.name for r in ExportExtractor().extract(module)] == ["fetch"]

    def test_first_declaration_wins(self, function_decl: Declaration) -> None:
        """Test that merged declarations are represented by the first."""
        interface = declaration(DeclarationKind.INTERFACE, "fetch")
        module = ParsedModule(
            file=None, exports=[ExportedSymbol("fetch", [interface, function_decl])]
        )

        assert ExportExtractor().extract(module) == []

    def test_extract_all_unique_names(self, function_decl: Declaration) -> None:
        """Test that names stay unique across modules."""
        alias = declaration(DeclarationKind.TYPE_ALIAS, "fetch", type_text="string")
        modules = [
            ParsedModule(file=None, exports=[ExportedSymbol("fetch", [function_decl])]),
            ParsedModule(file=None, exports=[ExportedSymbol("fetch", [alias])]),
        ]

        records = ExportExtractor().extract_all(modules)

        assert len(records) == 1
        assert records[0].kind == ExportKind.FUNCTION


class TestMergeRecords:
    """Tests for merging record groups."""

    def test_first_wins_and_order_kept(self) -> None:
        """Test that later duplicates are dropped."""
        a1 = ExportRecord("a", ExportKind.CONST, "const a: 1")
        b = ExportRecord("b", ExportKind.CONST, "const b: 2")
        a2 = ExportRecord("a", ExportKind.CONST, "const a: 3")

        assert merge_records([[a1], [b, a2]]) == [a1, b]
