"""TypeScript analyzer for resolving module exports with tree-sitter."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from tsprobe.core.exceptions import ParseError
from tsprobe.languages.models import (
    Declaration,
    DeclarationKind,
    ExportedSymbol,
    Parameter,
    ParsedModule,
    format_function_type,
)

TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())

DEFAULT_EXPORT = "default"

SUPPORTED_SUFFIXES = (".d.ts", ".d.mts", ".d.cts", ".ts", ".tsx", ".mts", ".cts")

_RESOLVE_SUFFIXES = (".d.ts", ".ts", ".tsx", ".d.mts", ".mts", ".d.cts", ".cts")
_INDEX_FILES = ("index.d.ts", "index.ts", "index.tsx")
_JS_SUFFIXES = {
    ".js": (".d.ts", ".ts", ".tsx"),
    ".jsx": (".d.ts", ".tsx"),
    ".mjs": (".d.mts", ".mts"),
    ".cjs": (".d.cts", ".cts"),
}

_FUNCTION_NODES = frozenset(
    {"function_declaration", "function_signature", "generator_function_declaration"}
)
_CLASS_NODES = frozenset({"class_declaration", "abstract_class_declaration"})
_VARIABLE_NODES = frozenset({"lexical_declaration", "variable_declaration"})
_NAMESPACE_NODES = frozenset({"internal_module", "module"})
_FUNCTION_VALUES = frozenset({"arrow_function", "function_expression", "function"})
_PARAMETER_NODES = frozenset({"required_parameter", "optional_parameter"})
_PARAMETER_MODIFIERS = frozenset(
    {"type_annotation", "accessibility_modifier", "override_modifier", "decorator"}
)

_NUMBER = re.compile(r"^-?[\d.][\w.]*$")
_DOC_DECORATION = re.compile(r"^\s*\*")
# Block tags start a line or follow whitespace; inline tags sit inside {@...}.
_BLOCK_TAG = re.compile(r"(?:^|\s)@[A-Za-z]")


def _is_jsdoc(comment: str) -> bool:
    return comment.startswith("/**") and comment.endswith("*/") and len(comment) > 4


def _jsdoc_summary(comment: str) -> str:
    """Return the free-text part of a JSDoc block, before its first tag."""
    lines = []
    for raw in comment[3:-2].splitlines():
        line = _DOC_DECORATION.sub("", raw).strip()
        tag = _BLOCK_TAG.search(line)
        if tag is not None:
            lines.append(line[: tag.start()])
            break
        lines.append(line)
    return "\n".join(lines).strip()


def _string_value(literal: str) -> str:
    if len(literal) >= 2 and literal[0] in "\"'`" and literal[-1] == literal[0]:
        return literal[1:-1]
    return literal


def _resolve_module_path(directory: Path, specifier: str) -> Path | None:
    """Find the file a relative import specifier refers to."""
    base = directory / specifier
    candidates: list[Path] = []
    if base.name.endswith(SUPPORTED_SUFFIXES):
        candidates.append(base)
    if base.suffix in _JS_SUFFIXES:
        stem = base.with_suffix("")
        candidates.extend(stem.with_name(stem.name + s) for s in _JS_SUFFIXES[base.suffix])
    candidates.extend(base.with_name(base.name + s) for s in _RESOLVE_SUFFIXES)
    candidates.extend(base / index for index in _INDEX_FILES)

    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    return None


@dataclass
class _ImportBinding:
    """A local name bound by an import statement."""

    source: str
    # None for namespace imports (import * as ns).
    imported_name: str | None


@dataclass
class _ExportEntry:
    """One export statement entry, before resolution."""

    kind: str
    name: str = ""
    local_name: str = ""
    source: str | None = None
    declarations: list[Declaration] = field(default_factory=list)


@dataclass
class _ModuleScope:
    """Unresolved export table of one parsed file."""

    file: Path | None
    locals: dict[str, list[Declaration]] = field(default_factory=dict)
    namespace_members: dict[str, list[Declaration]] = field(default_factory=dict)
    imports: dict[str, _ImportBinding] = field(default_factory=dict)
    entries: list[_ExportEntry] = field(default_factory=list)
    has_errors: bool = False


class TypeScriptAnalyzer:
    """Analyzer for TypeScript sources and declaration files using tree-sitter.

    Parsed files are memoized on the instance so re-export chains shared by
    several modules are read once. Create a new analyzer for each
    independent introspection run.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or logging.getLogger(__name__)
        self._parsers: dict[bool, Parser] = {}
        self._scopes: dict[Path, _ModuleScope] = {}
        self._resolved: dict[Path, dict[str, list[Declaration]]] = {}
        # Modules whose resolution was cut short by a re-export cycle.
        self._cut_short: set[Path] = set()

    def supports(self, file: Path) -> bool:
        """Check if this analyzer supports the given file."""
        return file.name.endswith(SUPPORTED_SUFFIXES)

    def parse(self, file: Path) -> ParsedModule:
        """Parse a file and resolve its exports."""
        scope = self._load(file.resolve())
        return self._to_module(scope, self._resolve_exports(scope, set()))

    def parse_source(self, source: str, file_name: str = "temp.ts") -> ParsedModule:
        """Parse in-memory source text and resolve its exports.

        Relative re-exports cannot be followed without a file on disk, so they
        surface as unresolved export specifiers.
        """
        scope = self._build(source.encode("utf-8"), None, tsx=file_name.endswith(".tsx"))
        return self._to_module(scope, self._resolve_exports(scope, set()))

    def _parser(self, tsx: bool) -> Parser:
        if tsx not in self._parsers:
            self._parsers[tsx] = Parser(TSX_LANGUAGE if tsx else TS_LANGUAGE)
        return self._parsers[tsx]

    def _load(self, path: Path) -> _ModuleScope:
        if path in self._scopes:
            return self._scopes[path]

        try:
            source = path.read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read {path}: {e}") from e
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Cannot read {path}: {e}") from e

        scope = self._build(source, path, tsx=path.suffix == ".tsx")
        self._scopes[path] = scope
        return scope

    def _build(self, source: bytes, file: Path | None, tsx: bool) -> _ModuleScope:
        tree = self._parser(tsx).parse(source)
        root = tree.root_node
        if root.has_error:
            self._log.debug("Syntax errors in %s, using recovered tree", file or "<source>")
        scope = _ScopeBuilder(source, file).build(root)
        scope.has_errors = root.has_error
        return scope

    def _import(self, scope: _ModuleScope, specifier: str) -> _ModuleScope | None:
        """Load the module a specifier points to, if it can be found on disk."""
        if scope.file is None or not specifier.startswith("."):
            self._log.debug("Not following module %r", specifier)
            return None

        path = _resolve_module_path(scope.file.parent, specifier)
        if path is None:
            self._log.debug("Cannot resolve module %r from %s", specifier, scope.file)
            return None

        try:
            return self._load(path)
        except ParseError as e:
            self._log.warning("Skipping re-exported module: %s", e)
            return None

    def _resolve_exports(
        self, scope: _ModuleScope, visiting: set[Path]
    ) -> dict[str, list[Declaration]]:
        """Build the export table of a module, following re-export chains.

        Direct exports come first in statement order; star exports fill in
        names the module does not export itself.
        """
        if scope.file is not None:
            if scope.file in self._resolved:
                return self._resolved[scope.file]
            if scope.file in visiting:
                self._cut_short.add(scope.file)
                return {}
            visiting.add(scope.file)

        exports: dict[str, list[Declaration]] = {}
        star_sources: list[str] = []

        for entry in scope.entries:
            if entry.kind == "star" and entry.source is not None:
                star_sources.append(entry.source)
            elif entry.kind == "assignment":
                for member in scope.namespace_members.get(entry.name, []):
                    exports.setdefault(member.name, []).append(member)
            elif entry.kind == "named":
                decls = self._resolve_named(scope, entry, visiting)
                exports.setdefault(entry.name, []).extend(decls)
            else:
                exports.setdefault(entry.name, []).extend(entry.declarations)

        for source in star_sources:
            target = self._import(scope, source)
            if target is None:
                continue
            for name, decls in self._resolve_exports(target, visiting).items():
                if name == DEFAULT_EXPORT or name in exports:
                    continue
                exports[name] = list(decls)

        if scope.file is not None:
            visiting.discard(scope.file)
            self._cut_short.discard(scope.file)
            # A table built while an enclosing module was still open may lack its names.
            if not self._cut_short & visiting:
                self._resolved[scope.file] = exports
        return exports

    def _resolve_named(
        self, scope: _ModuleScope, entry: _ExportEntry, visiting: set[Path]
    ) -> list[Declaration]:
        """Resolve an export specifier to the declarations it forwards."""
        if entry.source is not None:
            decls = self._lookup(scope, entry.source, entry.local_name, visiting)
            return decls or entry.declarations

        if entry.local_name in scope.locals:
            return scope.locals[entry.local_name]

        binding = scope.imports.get(entry.local_name)
        if binding is not None and binding.imported_name is not None:
            decls = self._lookup(scope, binding.source, binding.imported_name, visiting)
            if decls:
                return decls

        return entry.declarations

    def _lookup(
        self, scope: _ModuleScope, source: str, name: str, visiting: set[Path]
    ) -> list[Declaration]:
        target = self._import(scope, source)
        if target is None:
            return []
        return self._resolve_exports(target, visiting).get(name, [])

    def _to_module(
        self, scope: _ModuleScope, exports: dict[str, list[Declaration]]
    ) -> ParsedModule:
        return ParsedModule(
            file=scope.file,
            exports=[ExportedSymbol(name=name, declarations=list(decls)) for name, decls in exports.items()],
            has_errors=scope.has_errors,
        )


class _ScopeBuilder:
    """Walks a program tree and records declarations, imports and exports."""

    def __init__(self, source: bytes, file: Path | None) -> None:
        self._source = source
        self._scope = _ModuleScope(file=file)

    def build(self, root: Node) -> _ModuleScope:
        for child in _named(root):
            self._visit_statement(child)
        return self._scope

    def _text(self, node: Node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def _slice(self, start: int, end: int) -> str:
        return self._source[start:end].decode("utf-8", errors="replace")

    def _add_locals(self, decls: list[Declaration]) -> None:
        for decl in decls:
            self._scope.locals.setdefault(decl.name, []).append(decl)

    def _visit_statement(self, node: Node) -> None:
        if node.type == "export_statement":
            self._visit_export(node)
        elif node.type == "import_statement":
            self._visit_import(node)
        elif node.type == "expression_statement":
            # `namespace X {}` can surface as an expression statement.
            for child in _named(node):
                if child.type in _NAMESPACE_NODES:
                    self._add_locals(self._declarations(child, node))
        else:
            self._add_locals(self._declarations(node, node))

    def _visit_export(self, node: Node) -> None:
        tokens = {child.type for child in node.children if not child.is_named}
        declaration = node.child_by_field_name("declaration")
        source_node = node.child_by_field_name("source")
        source = _string_value(self._text(source_node)) if source_node is not None else None

        if "default" in tokens:
            decls = self._declarations(declaration, node) if declaration is not None else []
            self._add_locals(decls)
            self._scope.entries.append(
                _ExportEntry(kind="local", name=DEFAULT_EXPORT, declarations=decls)
            )
            return

        if declaration is not None:
            decls = self._declarations(declaration, node)
            self._add_locals(decls)
            for decl in decls:
                self._scope.entries.append(
                    _ExportEntry(kind="local", name=decl.name, declarations=[decl])
                )
            return

        for child in _named(node):
            if child.type == "export_clause":
                self._visit_export_clause(child, source)
                return
            if child.type == "namespace_export":
                self._visit_namespace_export(node, child, source)
                return

        # `export as namespace X` and `export import A = B.C` export nothing here.
        if "*" in tokens and source is not None:
            self._scope.entries.append(_ExportEntry(kind="star", source=source))
        elif "=" in tokens:
            for child in _named(node):
                if child.type == "identifier":
                    self._scope.entries.append(
                        _ExportEntry(kind="assignment", name=self._text(child))
                    )
                    break

    def _visit_export_clause(self, clause: Node, source: str | None) -> None:
        for spec in _named(clause):
            if spec.type != "export_specifier":
                continue
            name_node = spec.child_by_field_name("name")
            if name_node is None:
                continue
            alias_node = spec.child_by_field_name("alias")
            local_name = _string_value(self._text(name_node))
            exported = _string_value(self._text(alias_node)) if alias_node is not None else local_name
            specifier = Declaration(
                kind=DeclarationKind.EXPORT_SPECIFIER,
                name=local_name,
                text=self._text(spec),
                line=spec.start_point[0] + 1,
                file=self._scope.file,
            )
            self._scope.entries.append(
                _ExportEntry(
                    kind="named",
                    name=exported,
                    local_name=local_name,
                    source=source,
                    declarations=[specifier],
                )
            )

    def _visit_namespace_export(self, statement: Node, node: Node, source: str | None) -> None:
        names = _named(node)
        if not names:
            return
        name = _string_value(self._text(names[-1]))
        decl = Declaration(
            kind=DeclarationKind.NAMESPACE,
            name=name,
            text=self._text(statement),
            line=statement.start_point[0] + 1,
            file=self._scope.file,
            docs=self._docs(statement),
        )
        self._scope.entries.append(
            _ExportEntry(kind="namespace", name=name, source=source, declarations=[decl])
        )

    def _visit_import(self, node: Node) -> None:
        source_node = node.child_by_field_name("source")
        if source_node is None:
            return
        source = _string_value(self._text(source_node))
        imports = self._scope.imports

        for clause in _named(node):
            if clause.type != "import_clause":
                continue
            for child in _named(clause):
                if child.type == "identifier":
                    imports[self._text(child)] = _ImportBinding(source, DEFAULT_EXPORT)
                elif child.type == "namespace_import":
                    idents = [c for c in _named(child) if c.type == "identifier"]
                    if idents:
                        imports[self._text(idents[-1])] = _ImportBinding(source, None)
                elif child.type == "named_imports":
                    for spec in _named(child):
                        if spec.type != "import_specifier":
                            continue
                        name_node = spec.child_by_field_name("name")
                        if name_node is None:
                            continue
                        alias_node = spec.child_by_field_name("alias")
                        local = self._text(alias_node if alias_node is not None else name_node)
                        imports[local] = _ImportBinding(
                            source, _string_value(self._text(name_node))
                        )

    def _declarations(self, node: Node, anchor: Node, ambient: bool = False) -> list[Declaration]:
        """Flatten a declaration node into Declarations.

        ``anchor`` is the enclosing statement: documentation comments precede
        it and signature text starts at it.
        """
        kind = node.type
        if kind == "ambient_declaration":
            decls: list[Declaration] = []
            for child in _named(node):
                decls.extend(self._declarations(child, anchor, ambient=True))
            return decls
        if kind in _FUNCTION_NODES:
            return self._optional(self._function(node, anchor))
        if kind in _CLASS_NODES:
            return self._optional(self._class(node, anchor))
        if kind in _VARIABLE_NODES:
            return self._variables(node, anchor)
        if kind == "type_alias_declaration":
            return self._optional(self._type_alias(node, anchor))
        if kind == "interface_declaration":
            return self._optional(self._simple(DeclarationKind.INTERFACE, node, anchor))
        if kind == "enum_declaration":
            return self._optional(self._simple(DeclarationKind.ENUM, node, anchor))
        if kind in _NAMESPACE_NODES:
            return self._optional(self._namespace(node, anchor, ambient))
        return []

    @staticmethod
    def _optional(decl: Declaration | None) -> list[Declaration]:
        return [decl] if decl is not None else []

    def _base(self, kind: DeclarationKind, name: str, node: Node, anchor: Node) -> Declaration:
        return Declaration(
            kind=kind,
            name=name,
            text=self._text(node),
            line=node.start_point[0] + 1,
            file=self._scope.file,
            docs=self._docs(anchor),
        )

    def _simple(self, kind: DeclarationKind, node: Node, anchor: Node) -> Declaration | None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        return self._base(kind, self._text(name_node), node, anchor)

    def _function(self, node: Node, anchor: Node) -> Declaration | None:
        decl = self._simple(DeclarationKind.FUNCTION, node, anchor)
        if decl is None:
            return None
        body = node.child_by_field_name("body")
        end = body.start_byte if body is not None else node.end_byte
        decl.signature_text = self._slice(anchor.start_byte, end).strip().rstrip(";").rstrip()
        decl.parameters = self._parameters(node.child_by_field_name("parameters"))
        decl.return_type = self._annotation(node.child_by_field_name("return_type"))
        return decl

    def _class(self, node: Node, anchor: Node) -> Declaration | None:
        decl = self._simple(DeclarationKind.CLASS, node, anchor)
        if decl is None:
            return None
        body = node.child_by_field_name("body")
        end = body.start_byte if body is not None else node.end_byte
        decl.signature_text = self._slice(anchor.start_byte, end).strip()
        for heritage in _named(node):
            if heritage.type != "class_heritage":
                continue
            for clause in _named(heritage):
                if clause.type == "extends_clause":
                    decl.extends_text = self._text(clause)
        return decl

    def _type_alias(self, node: Node, anchor: Node) -> Declaration | None:
        decl = self._simple(DeclarationKind.TYPE_ALIAS, node, anchor)
        if decl is None:
            return None
        value = node.child_by_field_name("value")
        decl.type_text = self._text(value) if value is not None else None
        return decl

    def _variables(self, node: Node, anchor: Node) -> list[Declaration]:
        keyword_node = node.child_by_field_name("kind")
        if keyword_node is not None:
            keyword = self._text(keyword_node)
        else:
            keyword = self._text(node.children[0]) if node.children else "var"
        constant = keyword == "const"

        decls = []
        for declarator in _named(node):
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            # Destructuring patterns declare no single name.
            if name_node is None or name_node.type != "identifier":
                continue
            decl = self._base(DeclarationKind.VARIABLE, self._text(name_node), declarator, anchor)
            decl.type_text = self._annotation(
                declarator.child_by_field_name("type")
            ) or self._infer_type(declarator.child_by_field_name("value"), constant)
            decls.append(decl)
        return decls

    def _namespace(self, node: Node, anchor: Node, ambient: bool) -> Declaration | None:
        name_node = node.child_by_field_name("name")
        # `declare module "pkg" {}` augments another module.
        if name_node is None or name_node.type == "string":
            return None
        decl = self._base(DeclarationKind.NAMESPACE, self._text(name_node), node, anchor)

        body = node.child_by_field_name("body")
        if body is not None:
            members = self._scope.namespace_members.setdefault(decl.name, [])
            for child in _named(body):
                if child.type == "export_statement":
                    inner = child.child_by_field_name("declaration")
                    if inner is not None:
                        members.extend(self._declarations(inner, child, ambient))
                elif ambient:
                    members.extend(self._declarations(child, child, ambient))
        return decl

    def _parameters(self, node: Node | None) -> list[Parameter]:
        if node is None:
            return []
        if node.type == "identifier":
            return [Parameter(name=self._text(node))]

        params = []
        for child in _named(node):
            if child.type not in _PARAMETER_NODES:
                continue
            pattern = child.child_by_field_name("pattern")
            if pattern is None:
                pattern = next(
                    (c for c in _named(child) if c.type not in _PARAMETER_MODIFIERS), None
                )
            if pattern is None:
                continue
            params.append(
                Parameter(
                    name=self._text(pattern),
                    type_text=self._annotation(child.child_by_field_name("type")),
                )
            )
        return params

    def _annotation(self, node: Node | None) -> str | None:
        """Text of the type inside a `: T` annotation."""
        if node is None:
            return None
        inner = _named(node)
        if inner:
            return self._text(inner[0])
        return self._text(node).lstrip(":").strip() or None

    def _infer_type(self, value: Node | None, constant: bool) -> str | None:
        """Best-effort type of an initializer, widened unless ``constant``."""
        if value is None:
            return None
        kind = value.type
        text = self._text(value)

        if kind == "string":
            return f'"{_string_value(text)}"' if constant else "string"
        if kind == "template_string":
            return "string"
        if kind == "number" or (kind == "unary_expression" and _NUMBER.match(text)):
            return text if constant else "number"
        if kind in ("true", "false"):
            return text if constant else "boolean"
        if kind in ("null", "undefined"):
            return kind
        if kind == "parenthesized_expression":
            inner = _named(value)
            return self._infer_type(inner[0], constant) if inner else None
        if kind == "as_expression":
            inner = _named(value)
            if any(not c.is_named and c.type == "const" for c in value.children):
                return self._infer_type(inner[0], True) if inner else None
            return self._text(inner[-1]) if len(inner) > 1 else None
        if kind == "satisfies_expression":
            inner = _named(value)
            return self._infer_type(inner[0], constant) if inner else None
        if kind in _FUNCTION_VALUES:
            params = value.child_by_field_name("parameters") or value.child_by_field_name(
                "parameter"
            )
            return format_function_type(
                self._parameters(params),
                self._annotation(value.child_by_field_name("return_type")),
            )
        if kind == "new_expression":
            constructor = value.child_by_field_name("constructor")
            return self._text(constructor) if constructor is not None else None
        return None

    def _docs(self, anchor: Node) -> list[str]:
        """JSDoc summaries of the comments directly preceding ``anchor``."""
        docs = []
        sibling = anchor.prev_named_sibling
        while sibling is not None and sibling.type == "comment":
            text = self._text(sibling)
            if _is_jsdoc(text):
                docs.append(_jsdoc_summary(text))
            sibling = sibling.prev_named_sibling
        docs.reverse()
        return docs


def _named(node: Node) -> list[Node]:
    """Named children, without comments."""
    return [child for child in node.named_children if child.type != "comment"]
