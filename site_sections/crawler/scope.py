# site_sections/crawler/scope.py
"""
URL normalization and crawl-scope filtering.

A link is admitted when, after resolving it against the page it was found on
and dropping its query and fragment, its host matches the crawl's target host
(case-insensitive, leading ``www.`` ignored) and the next depth stays within
``max_depth``.
"""
from __future__ import annotations

import logging
from typing import Iterable, Iterator
from urllib.parse import urljoin, urlsplit, urlunsplit

from site_sections.crawler.models import CrawlTask
from site_sections.errors import LinkRejected

__all__ = ("normalize_url", "normalize_hostname", "primary_segment", "ScopeFilter")

logger = logging.getLogger("SiteSections")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def normalize_hostname(hostname: str) -> str:
    """Lower-case *hostname* and strip one leading ``www.``."""
    host = hostname.lower()
    return host[4:] if host.startswith("www.") else host


def normalize_url(url: str) -> str:
    """
    Canonical identity of a crawl URL: lower-case scheme and host,
    no default port, no query, no fragment, ``/`` for an empty path.

    Raises ValueError for URLs without an http(s) scheme or host, or with an
    invalid port.
    """
    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise ValueError(f"unsupported scheme {parts.scheme!r}")
    host = parts.hostname
    if not host:
        raise ValueError("missing host")
    port = parts.port  # ValueError on garbage ports
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    return urlunsplit((scheme, netloc, parts.path or "/", "", ""))


def primary_segment(url: str) -> str:
    """First non-empty, lower-cased path component of *url* or ``""``."""
    for part in urlsplit(url).path.split("/"):
        if part:
            return part.lower()
    return ""


class ScopeFilter:
    """Decides which discovered links become crawl tasks."""

    def __init__(self, start_url: str, max_depth: int) -> None:
        host = urlsplit(start_url).hostname
        if not host:
            raise ValueError(f"start URL has no host: {start_url!r}")
        self.target_host = normalize_hostname(host)
        self.max_depth = max_depth

    def check(self, link: str, page_url: str, current_depth: int) -> CrawlTask:
        """Return the admitted task for *link* or raise :class:`LinkRejected`."""
        next_depth = current_depth + 1
        if next_depth > self.max_depth:
            raise LinkRejected(link, "depth budget exceeded")
        try:
            url = normalize_url(urljoin(page_url, link.strip()))
        except ValueError as exc:
            raise LinkRejected(link, f"malformed ({exc})") from exc
        host = urlsplit(url).hostname or ""
        if normalize_hostname(host) != self.target_host:
            raise LinkRejected(link, "out of scope")
        return CrawlTask(url=url, depth=next_depth)

    def filter_links(
        self, links: Iterable[str], page_url: str, current_depth: int
    ) -> Iterator[CrawlTask]:
        """Yield admitted tasks; rejections are dropped silently."""
        if current_depth + 1 > self.max_depth:
            return
        for link in links:
            try:
                yield self.check(link, page_url, current_depth)
            except LinkRejected as exc:
                logger.debug("Skip %s", exc)
