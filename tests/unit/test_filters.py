"""Tests for search and limit filtering."""

import pytest

from tsprobe.core.exceptions import InvalidSearchPatternError
from tsprobe.core.filters import filter_records
from tsprobe.core.models import ExportKind, ExportRecord


@pytest.fixture
def records() -> list[ExportRecord]:
    """A small mixed set of records."""
    return [
        ExportRecord("parseConfig", ExportKind.FUNCTION, "function parseConfig(text: string): Config"),
        ExportRecord("Config", ExportKind.TYPE, "type Config = { debug: boolean }"),
        ExportRecord("Client", ExportKind.CLASS, "class Client", "HTTP client for the API"),
        ExportRecord("VERSION", ExportKind.CONST, 'const VERSION: "1.0.0"'),
    ]


class TestSearchTerm:
    """Tests for regex matching."""

    def test_no_filter_returns_everything(self, records: list[ExportRecord]) -> None:
        """Test that omitting the search term keeps all records."""
        assert filter_records(records) == records

    def test_empty_term_is_no_filter(self, records: list[ExportRecord]) -> None:
        """Test that an empty search term means no filter."""
        assert filter_records(records, search_term="") == records

    def test_matches_name_case_insensitively(self, records: list[ExportRecord]) -> None:
        """Test that matching ignores case."""
        result = filter_records(records, search_term="^client$")
        assert [r.name for r in result] == ["Client"]

    def test_matches_signature(self, records: list[ExportRecord]) -> None:
        """Test that the type signature is searched."""
        result = filter_records(records, search_term="boolean")
        assert [r.name for r in result] == ["Config"]

    def test_matches_description(self, records: list[ExportRecord]) -> None:
        """Test that the description is searched."""
        result = filter_records(records, search_term="http")
        assert [r.name for r in result] == ["Client"]

    def test_preserves_order(self, records: list[ExportRecord]) -> None:
        """Test that matching records keep their original order."""
        result = filter_records(records, search_term="config")
        assert [r.name for r in result] == ["parseConfig", "Config"]

    def test_invalid_pattern_raises(self, records: list[ExportRecord]) -> None:
        """Test that a malformed regex raises InvalidSearchPatternError."""
        with pytest.raises(InvalidSearchPatternError) as exc_info:
            filter_records(records, search_term="(unclosed")

        assert "(unclosed" in str(exc_info.value)


class TestLimit:
    """Tests for result truncation."""

    def test_limit_truncates(self, records: list[ExportRecord]) -> None:
        """Test that a positive limit keeps the first N records."""
        assert [r.name for r in filter_records(records, limit=2)] == ["parseConfig", "Config"]

    @pytest.mark.parametrize("limit", [0, -1, None])
    def test_non_positive_limit_is_ignored(
        self, records: list[ExportRecord], limit: int | None
    ) -> None:
        """Test that zero, negative and missing limits return everything."""
        assert len(filter_records(records, limit=limit)) == len(records)

    def test_limit_applies_after_search(self, records: list[ExportRecord]) -> None:
        """Test that the limit counts matching records only."""
        result = filter_records(records, search_term="c", limit=1)
        assert [r.name for r in result] == ["parseConfig"]

    def test_does_not_mutate_input(self, records: list[ExportRecord]) -> None:
        """Test that the input list is left untouched."""
        before = list(records)
        filter_records(records, search_term="Client", limit=1)
        assert records == before
