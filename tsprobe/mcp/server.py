"""MCP server implementation for tsprobe."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from tsprobe.core.exceptions import TsprobeError
from tsprobe.core.introspector import Introspector
from tsprobe.core.models import DEFAULT_CACHE_DIR, IntrospectionOptions, ProjectOptions

server = Server("tsprobe")
logger = logging.getLogger(__name__)

_FILTER_PROPERTIES: dict[str, Any] = {
    "searchTerm": {
        "type": "string",
        "description": "Filter exports by search term (supports regex)",
    },
    "cache": {
        "type": "boolean",
        "description": "Enable caching for faster repeat lookups",
    },
    "cacheDir": {
        "type": "string",
        "description": f"Directory to store cache files (default: {DEFAULT_CACHE_DIR})",
    },
    "limit": {
        "type": "integer",
        "description": "Limit the number of exports returned",
    },
}


def default_search_paths() -> list[Path]:
    """The working directory and its parent."""
    cwd = Path.cwd()
    return [cwd, cwd.parent]


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available tools."""
    return [
        Tool(
            name="introspect-package",
            description=(
                "List the exported functions, classes, types and constants of an installed "
                "npm package, read from its TypeScript declaration files."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "packageName": {
                        "type": "string",
                        "description": "Name of the npm package to introspect (e.g. 'zod')",
                    },
                    "searchPaths": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Additional paths to search for the package",
                    },
                    **_FILTER_PROPERTIES,
                },
                "required": ["packageName"],
            },
        ),
        Tool(
            name="introspect-source",
            description="List the exports of a TypeScript source snippet.",
            inputSchema={
                "type": "object",
                "properties": {
                    "source": {
                        "type": "string",
                        "description": "TypeScript source code to analyze",
                    },
                },
                "required": ["source"],
            },
        ),
        Tool(
            name="introspect-project",
            description=(
                "List the exports of every source file in a TypeScript project. "
                "Defaults to the project whose tsconfig.json sits in the parent or "
                "current directory."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "projectPath": {
                        "type": "string",
                        "description": "Project root directory",
                    },
                    "tsConfigPath": {
                        "type": "string",
                        "description": "Path to tsconfig.json",
                    },
                    **_FILTER_PROPERTIES,
                },
            },
        ),
    ]


@server.call_tool()  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Handle tool calls."""
    try:
        if name == "introspect-package":
            result: Any = _handle_package(arguments)
        elif name == "introspect-source":
            result = _handle_source(arguments["source"])
        elif name == "introspect-project":
            result = _handle_project(arguments)
        else:
            result = {"error": f"Unknown tool: {name}"}

        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    except (TsprobeError, KeyError) as e:
        logger.warning("Tool %s failed: %s", name, e)
        return [TextContent(type="text", text=json.dumps({"error": str(e)}))]


def _handle_package(arguments: dict[str, Any]) -> list[dict[str, str]]:
    """Handle introspect-package tool."""
    search_paths = [Path(p) for p in arguments.get("searchPaths") or []]
    options = IntrospectionOptions(
        search_paths=search_paths + default_search_paths(),
        search_term=arguments.get("searchTerm"),
        cache=bool(arguments.get("cache", False)),
        cache_dir=arguments.get("cacheDir") or DEFAULT_CACHE_DIR,
        limit=arguments.get("limit"),
    )
    records = Introspector().introspect_package(arguments["packageName"], options)
    return [r.to_dict() for r in records]


def _handle_source(source: str) -> list[dict[str, str]]:
    """Handle introspect-source tool."""
    return [r.to_dict() for r in Introspector().introspect_source(source)]


def _handle_project(arguments: dict[str, Any]) -> list[dict[str, str]]:
    """Handle introspect-project tool."""
    project_path = arguments.get("projectPath")
    config_path = arguments.get("tsConfigPath")
    options = ProjectOptions(
        project_path=Path(project_path) if project_path else None,
        config_path=Path(config_path) if config_path else None,
        search_term=arguments.get("searchTerm"),
        cache=bool(arguments.get("cache", False)),
        cache_dir=arguments.get("cacheDir") or DEFAULT_CACHE_DIR,
        limit=arguments.get("limit"),
    )
    records = Introspector().introspect_project(options)
    return [r.to_dict() for r in records]


async def serve() -> None:
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
