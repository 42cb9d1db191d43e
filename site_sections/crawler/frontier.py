# site_sections/crawler/frontier.py
"""
Crawl frontier: pending tasks plus the set of URLs ever admitted.
"""
from __future__ import annotations

import asyncio
import logging
from typing import List, Set
from urllib.parse import urlsplit, urlunsplit

from site_sections.crawler.models import CrawlTask
from site_sections.crawler.scope import normalize_url

__all__ = ("Frontier", "www_variant")

logger = logging.getLogger("SiteSections")


def www_variant(url: str) -> str | None:
    """``www.``-prefixed twin of *url* or None if the host already has it."""
    parts = urlsplit(url)
    if parts.netloc.lower().startswith("www."):
        return None
    path = "" if parts.path == "/" else parts.path
    return urlunsplit((parts.scheme, f"www.{parts.netloc}", path, "", ""))


class Frontier:
    """
    Work queue with at-most-once admission per normalized URL.

    :meth:`submit` has no await point, so the membership test and the insert
    into ``visited`` happen in one step on the event loop; two workers that
    discover the same URL can never both get it admitted.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[CrawlTask] = asyncio.Queue()
        self._visited: Set[str] = set()
        self.duplicates = 0

    def submit(self, task: CrawlTask) -> bool:
        if task.url in self._visited:
            self.duplicates += 1
            return False
        self._visited.add(task.url)
        self._queue.put_nowait(task)
        return True

    def seed(self, url: str, include_www: bool = False) -> List[CrawlTask]:
        """Submit the depth-0 seed(s); returns the admitted tasks."""
        seeds = [normalize_url(url)]
        if include_www:
            twin = www_variant(seeds[0])
            if twin is not None:
                seeds.append(normalize_url(twin))
        admitted = [task for task in (CrawlTask(u, 0) for u in seeds) if self.submit(task)]
        logger.debug("Seeded frontier with %s", [t.url for t in admitted])
        return admitted

    async def next_pending(self) -> CrawlTask:
        return await self._queue.get()

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait for quiescence: nothing pending and nothing in flight."""
        await self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def __contains__(self, url: object) -> bool:
        return url in self._visited

    def __len__(self) -> int:
        return len(self._visited)
