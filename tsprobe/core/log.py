"""Logging setup for tsprobe.

Every module logs through ``logging.getLogger(__name__)`` under the ``tsprobe``
namespace. The namespace carries a ``NullHandler`` so library use stays silent
until an application calls :func:`configure_logging`.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "tsprobe"


def configure_logging(verbose: bool = False) -> None:
    """Send tsprobe logs to stderr through rich.

    Stdout is left alone: it carries JSON output and the MCP stdio transport.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
