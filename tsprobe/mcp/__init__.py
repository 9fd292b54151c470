"""
MCP server for tsprobe.

Exposes package introspection tools to LLMs via the Model Context Protocol.

Tools:
    - introspect-package: List the exports of an installed npm package
    - introspect-source: List the exports of a TypeScript snippet
    - introspect-project: List the exports of a TypeScript project

Usage:
    Install: pip install tsprobe
    Run: tsprobe-mcp
    Debug logging (stderr): TSPROBE_VERBOSE=1 tsprobe-mcp
"""

import asyncio
import os

from tsprobe.core.log import configure_logging
from tsprobe.mcp.server import serve as _serve


def serve() -> None:
    """Entry point for the MCP server."""
    configure_logging(os.environ.get("TSPROBE_VERBOSE", "") not in ("", "0", "false"))
    asyncio.run(_serve())


__all__ = ["serve"]
