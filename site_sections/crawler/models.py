# site_sections/crawler/models.py
"""
Data models for the SiteSections crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from site_sections.crawler.session import Session


@dataclass(frozen=True, slots=True)
class CrawlTask:
    """A normalized URL scheduled at a given depth; identity is the URL."""

    url: str
    depth: int


@dataclass(slots=True)
class PageFetchResult:
    """What a fetch backend hands back: resolved URL, HTML and raw hrefs."""

    url: str
    html: str
    links: List[str] = field(default_factory=list)
    session: Optional["Session"] = None


@dataclass(slots=True)
class PageRecord:
    """One row of the export.

    ``section`` and ``template`` are only changed through :meth:`set_section`
    and :meth:`clear_section`, so they never diverge.
    """

    url: str
    title: str
    description: str
    depth: int
    content_length: int
    section: str = ""
    template: str = ""

    @property
    def segment(self) -> str:
        return self.section.strip().lower()

    def set_section(self, segment: str) -> None:
        self.section = segment
        self.template = segment

    def clear_section(self) -> None:
        self.set_section("")

    def to_row(self) -> List[str]:
        return [
            self.url,
            self.title,
            self.description,
            str(self.depth),
            str(self.content_length),
            self.section,
            self.template,
        ]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
