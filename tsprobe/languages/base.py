"""Protocol for source analyzers."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from tsprobe.languages.models import ParsedModule


class SourceAnalyzer(Protocol):
    """Protocol for source analyzers."""

    def parse(self, file: Path) -> ParsedModule:
        """Parse a file and resolve its exports."""
        ...

    def parse_source(self, source: str, file_name: str = "temp.ts") -> ParsedModule:
        """Parse in-memory source text and resolve its exports."""
        ...

    def supports(self, file: Path) -> bool:
        """Check if this analyzer supports the given file."""
        ...
