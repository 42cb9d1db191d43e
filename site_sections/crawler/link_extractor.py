# site_sections/crawler/link_extractor.py
"""
Link collection for SiteSections.
"""
from __future__ import annotations

from typing import Iterator, List

from bs4 import BeautifulSoup
from bs4.element import Tag

SKIP_PREFIXES = ("mailto:", "javascript:")


def iter_hrefs(soup: BeautifulSoup) -> Iterator[str]:
    """Raw ``href`` of every ``<a href>`` in document order, stripped."""
    for anchor in soup.find_all("a", href=True):
        href = anchor.get("href") if isinstance(anchor, Tag) else None
        if isinstance(href, str) and href.strip():
            yield href.strip()


def extract_links(html: str) -> List[str]:
    """
    Raw links of *html* without ``mailto:``/``javascript:`` targets.

    Resolution and scope checks belong to
    :class:`site_sections.crawler.scope.ScopeFilter`.
    """
    soup = BeautifulSoup(html, "html.parser")
    return [href for href in iter_hrefs(soup) if not href.lower().startswith(SKIP_PREFIXES)]
