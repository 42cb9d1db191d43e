# site_sections/sinks/base.py
"""
Common sink contract: header row plus one row per :class:`PageRecord`,
written as a full replacement of the previous export.
"""
from __future__ import annotations

from typing import List, Protocol, Sequence

from site_sections.crawler.models import PageRecord

HEADER: List[str] = [
    "URL",
    "Title",
    "Description",
    "Depth",
    "ContentLength",
    "Section",
    "Template",
]


class Sink(Protocol):
    """Destination of the final records."""

    def validate(self) -> None:
        """Check credentials/target before crawling; raise SetupError."""

    def write(self, records: Sequence[PageRecord]) -> None:
        """Replace the previous export with *records*; raise ExportFailure."""


def table(records: Sequence[PageRecord]) -> List[List[str]]:
    """Header followed by the rows, all values as text."""
    return [list(HEADER), *(record.to_row() for record in records)]


__all__ = ["HEADER", "Sink", "table"]
