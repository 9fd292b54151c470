"""Tests for the CLI and MCP adapters."""

import asyncio
import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tsprobe.cli import app
from tsprobe.mcp.server import call_tool, list_tools

runner = CliRunner()


@pytest.fixture
def temp_dir(monkeypatch: pytest.MonkeyPatch):
    """Create a temporary working directory for tests."""
    monkeypatch.delenv("NODE_PATH", raising=False)
    with tempfile.TemporaryDirectory() as td:
        path = Path(td).resolve()
        monkeypatch.chdir(path)
        yield path


class TestCli:
    """Tests for the typer application."""

    def test_source_json(self, temp_dir: Path) -> None:
        """Test listing a file's exports as JSON."""
        file_path = temp_dir / "snippet.ts"
        file_path.write_text("export type ID = string;\n")

        result = runner.invoke(app, ["source", str(file_path), "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"name": "ID", "kind": "type", "typeSignature": "type ID = string", "description": ""}
        ]

    def test_source_stdin(self, temp_dir: Path) -> None:
        """Test reading source from stdin."""
        result = runner.invoke(app, ["source", "-", "--json"], input="export const x = 1;\n")

        assert result.exit_code == 0
        assert json.loads(result.stdout)[0]["typeSignature"] == "const x: 1"

    def test_missing_package_prints_empty_list(self, temp_dir: Path) -> None:
        """Test that an unknown package is not a CLI error."""
        result = runner.invoke(app, ["package", "not-installed", "--json"])

        assert result.exit_code == 0
        assert "[]" in result.stdout

    def test_invalid_search_term_fails(self, temp_dir: Path) -> None:
        """Test that a bad pattern exits with status 1."""
        result = runner.invoke(app, ["package", "anything", "-s", "(", "--json"])

        assert result.exit_code == 1

    def test_invalid_project_fails(self, temp_dir: Path) -> None:
        """Test that a project without tsconfig.json exits with status 1."""
        result = runner.invoke(app, ["project", "--project", str(temp_dir / "missing")])

        assert result.exit_code == 1

    def test_clear_cache(self, temp_dir: Path) -> None:
        """Test that clear-cache removes entries."""
        cache_dir = temp_dir / ".tsprobe-cache"
        cache_dir.mkdir()
        (cache_dir / "zod.json").write_text("[]")

        result = runner.invoke(app, ["clear-cache"])

        assert result.exit_code == 0
        assert not (cache_dir / "zod.json").exists()


class TestMcpServer:
    """Tests for the MCP tool handlers."""

    def test_lists_three_tools(self) -> None:
        """Test the advertised tool names."""
        tools = asyncio.run(list_tools())

        assert [t.name for t in tools] == [
            "introspect-package",
            "introspect-source",
            "introspect-project",
        ]

    def test_introspect_source(self) -> None:
        """Test that the source tool returns records as JSON text."""
        content = asyncio.run(call_tool("introspect-source", {"source": "export class A {}"}))

        assert json.loads(content[0].text) == [
            {"name": "A", "kind": "class", "typeSignature": "typeof A", "description": ""}
        ]

    def test_project_error_payload(self, temp_dir: Path) -> None:
        """Test that failures become error payloads."""
        content = asyncio.run(
            call_tool("introspect-project", {"projectPath": str(temp_dir / "missing")})
        )

        assert "error" in json.loads(content[0].text)

    def test_unknown_tool(self) -> None:
        """Test the response for an unknown tool name."""
        content = asyncio.run(call_tool("nope", {}))

        assert json.loads(content[0].text) == {"error": "Unknown tool: nope"}
