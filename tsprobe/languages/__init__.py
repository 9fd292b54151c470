"""
Source analyzers: Turn source text into resolved export tables.

This module provides the parsing layer the extractor builds on.

Components:
    - SourceAnalyzer: Protocol defining the analyzer interface
    - TypeScriptAnalyzer: tree-sitter based analyzer for .ts/.d.ts/.tsx files
    - ParsedModule: Exported symbols of one file, re-exports resolved

The analyzer reports, per exported name:
    - Declarations: functions, classes, type aliases, variables, interfaces,
      enums, namespaces, in source order
    - Documentation: JSDoc summaries attached to each declaration
    - Rendering data: parameters, return and variable types, heritage

Adding a new language:
    1. Create a new analyzer class implementing the SourceAnalyzer protocol
    2. Implement parse() and parse_source() to return ParsedModule
    3. Implement supports() to check file extensions
"""

from tsprobe.languages.base import SourceAnalyzer
from tsprobe.languages.models import (
    Declaration,
    DeclarationKind,
    ExportedSymbol,
    Parameter,
    ParsedModule,
)
from tsprobe.languages.typescript import TypeScriptAnalyzer

__all__ = [
    "SourceAnalyzer",
    "Declaration",
    "DeclarationKind",
    "ExportedSymbol",
    "Parameter",
    "ParsedModule",
    "TypeScriptAnalyzer",
]
