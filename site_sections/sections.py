# File: site_sections/sections.py
"""site_sections.sections: section labels derived from URL structure.

Two passes. While the crawl runs every recorded page adds one to the count
of its primary path segment (:meth:`SectionClassifier.tally`). Once the
frontier is quiescent :meth:`SectionClassifier.finalize` keeps a page's
section only if the segment is whitelisted, or, without a whitelist, if it
was seen on at least two pages. A whitelist replaces the frequency rule
(threshold 1).
"""
from __future__ import annotations

from collections import Counter
from typing import FrozenSet, Iterable, Optional

from site_sections.crawler.models import PageRecord

__all__ = ["SectionClassifier"]


class SectionClassifier:
    """Segment counts gathered during the crawl and the final relabelling pass."""

    def __init__(self, whitelist: Optional[Iterable[str]] = None) -> None:
        normalized = frozenset(s.strip().lower() for s in whitelist or () if s.strip())
        self.whitelist: Optional[FrozenSet[str]] = normalized or None
        self.counts: Counter[str] = Counter()
        self.finalized = False

    @property
    def min_occurrences(self) -> int:
        return 1 if self.whitelist is not None else 2

    def tally(self, segment: str) -> None:
        if self.finalized:
            raise RuntimeError("tally after finalize")
        if segment:
            self.counts[segment] += 1

    def is_section(self, segment: str) -> bool:
        if not segment:
            return False
        allowed = self.whitelist is None or segment in self.whitelist
        return allowed and self.counts[segment] >= self.min_occurrences

    def finalize(self, records: Iterable[PageRecord]) -> None:
        """Relabel *records* in place; may only run once."""
        if self.finalized:
            raise RuntimeError("sections already finalized")
        self.finalized = True
        for record in records:
            segment = record.segment
            if not segment:
                record.clear_section()
            elif self.is_section(segment):
                record.set_section(segment)
            else:
                record.clear_section()
