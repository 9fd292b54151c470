"""Search and limit filtering for export records."""

from __future__ import annotations

import logging
import re

from tsprobe.core.exceptions import InvalidSearchPatternError
from tsprobe.core.models import ExportRecord

logger = logging.getLogger(__name__)


def compile_search_term(search_term: str) -> re.Pattern[str]:
    """Compile a case-insensitive search pattern."""
    try:
        return re.compile(search_term, re.IGNORECASE)
    except re.error as e:
        raise InvalidSearchPatternError(f"Invalid search pattern {search_term!r}: {e}") from e


def filter_records(
    records: list[ExportRecord],
    search_term: str | None = None,
    limit: int | None = None,
) -> list[ExportRecord]:
    """Keep records matching ``search_term``, then truncate to ``limit``.

    The pattern is searched in the name, the type signature and the
    description. A limit of zero or less means no limit. Order is preserved.

    Raises:
        InvalidSearchPatternError: If ``search_term`` is not a valid regex.
    """
    result = records

    if search_term:
        pattern = compile_search_term(search_term)
        result = [
            r
            for r in records
            if pattern.search(r.name)
            or pattern.search(r.type_signature)
            or pattern.search(r.description)
        ]
        logger.debug("Filtered to %d exports matching %r", len(result), search_term)

    if limit is not None and limit > 0:
        result = result[:limit]
        logger.debug("Limited to %d exports", len(result))

    return list(result)
