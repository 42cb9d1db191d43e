# site_sections/crawler/records.py
"""
Turn a fetched page into a :class:`PageRecord`.

Extraction is best effort: a missing title or description yields ``""``.
The only hard failure is :class:`BlockedPage`, raised when the HTML carries
an anti-bot signature.
"""
from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_sections.config import DEFAULT_BLOCK_SIGNATURES
from site_sections.crawler.models import PageFetchResult, PageRecord
from site_sections.crawler.scope import primary_segment
from site_sections.errors import BlockedPage

__all__ = ("find_block_signature", "extract_title", "extract_description", "build_record")

logger = logging.getLogger("SiteSections")

_DESCRIPTION_RE = re.compile(r"^description$", re.IGNORECASE)


def find_block_signature(html: str, signatures: Iterable[str] = DEFAULT_BLOCK_SIGNATURES) -> Optional[str]:
    """First signature found in the lower-cased HTML, else None."""
    lowered = html.lower()
    for signature in signatures:
        if signature in lowered:
            return signature
    return None


def extract_title(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return tag.get_text().strip() if isinstance(tag, Tag) else ""


def extract_description(soup: BeautifulSoup) -> str:
    try:
        tag = soup.find("meta", attrs={"name": _DESCRIPTION_RE})
        if not isinstance(tag, Tag):
            return ""
        content = tag.get("content")
        return content.strip() if isinstance(content, str) else ""
    except (AttributeError, TypeError) as exc:
        logger.debug("Description extraction failed: %s", exc)
        return ""


def build_record(
    page: PageFetchResult,
    depth: int,
    signatures: Sequence[str] = DEFAULT_BLOCK_SIGNATURES,
) -> PageRecord:
    """
    Build the record for *page* fetched at *depth*.

    If the HTML looks like a block page the page's session is marked bad and
    :class:`BlockedPage` is raised; no record is produced.
    """
    signature = find_block_signature(page.html, signatures)
    if signature is not None:
        if page.session is not None:
            page.session.mark_bad()
        raise BlockedPage(page.url, signature)

    soup = BeautifulSoup(page.html, "html.parser")
    record = PageRecord(
        url=page.url,
        title=extract_title(soup),
        description=extract_description(soup),
        depth=depth,
        content_length=len(page.html),
    )
    record.set_section(primary_segment(page.url))
    return record
