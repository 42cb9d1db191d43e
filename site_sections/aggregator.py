# File: site_sections/aggregator.py
"""site_sections.aggregator: crawl results and the final report."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from site_sections.crawler.models import PageRecord
from site_sections.sections import SectionClassifier


@dataclass(slots=True)
class CrawlReport:
    """Outcome of a crawl: page records plus failure counters."""

    records: List[PageRecord] = field(default_factory=list)
    visited: int = 0
    fetch_failures: int = 0
    blocked_pages: int = 0
    sections: Dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "visited": self.visited,
            "fetch_failures": self.fetch_failures,
            "blocked_pages": self.blocked_pages,
            "sections": self.sections,
        }

    def json(self, *, pretty: bool = False) -> str:
        """JSON form of the report."""
        return json.dumps(self.as_dict(), ensure_ascii=False, indent=2 if pretty else None)


class CrawlAggregator:
    """
    Shared state of one crawl, owned by the crawler and handed to its workers.

    Workers call :meth:`add` / :meth:`record_failure` /
    :meth:`record_blocked` from the event loop; none of them awaits, so each
    update is atomic with respect to the other workers.
    """

    def __init__(self, whitelist: Optional[Iterable[str]] = None) -> None:
        self.classifier = SectionClassifier(whitelist)
        self.records: List[PageRecord] = []
        self.fetch_failures = 0
        self.blocked_pages = 0

    def add(self, record: PageRecord) -> None:
        self.records.append(record)
        self.classifier.tally(record.segment)

    def record_failure(self) -> None:
        self.fetch_failures += 1

    def record_blocked(self) -> None:
        self.blocked_pages += 1

    def finalize(self, visited: int = 0) -> CrawlReport:
        """Run the section pass (after quiescence only) and build the report."""
        self.classifier.finalize(self.records)
        sections: Dict[str, int] = {}
        for record in self.records:
            if record.section:
                sections[record.section] = sections.get(record.section, 0) + 1
        return CrawlReport(
            records=list(self.records),
            visited=visited,
            fetch_failures=self.fetch_failures,
            blocked_pages=self.blocked_pages,
            sections=dict(sorted(sections.items())),
        )
