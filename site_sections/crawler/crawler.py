# === FILE: site_sections/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from typing import Optional

from site_sections.aggregator import CrawlAggregator, CrawlReport
from site_sections.config import CrawlerConfig
from site_sections.crawler.fetcher import HttpFetcher, PageFetcher
from site_sections.crawler.frontier import Frontier
from site_sections.crawler.models import CrawlTask
from site_sections.crawler.records import build_record
from site_sections.crawler.scope import ScopeFilter
from site_sections.errors import BlockedPage, FetchFailure
from site_sections.logger import get_logger


def make_fetcher(config: CrawlerConfig) -> PageFetcher:
    """Backend selected by ``config.backend``."""
    if config.backend == "browser":
        from site_sections.crawler.browser import BrowserFetcher

        return BrowserFetcher(config)
    return HttpFetcher(config)


class AsyncCrawler:
    """Async crawler: a worker pool over the Frontier, with section classification."""

    def __init__(self, config: CrawlerConfig, fetcher: Optional[PageFetcher] = None) -> None:
        self.config = config
        self.fetcher = fetcher if fetcher is not None else make_fetcher(config)
        self.scope = ScopeFilter(str(config.start_url), config.max_depth)
        self.frontier = Frontier()
        self.aggregator = CrawlAggregator(config.section_whitelist)
        self.logger = get_logger("crawler")

    async def __aenter__(self) -> AsyncCrawler:
        await self.fetcher.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.fetcher.__aexit__(exc_type, exc, tb)

    async def crawl(self) -> CrawlReport:
        self.logger.info(
            "Старт обхода: %s (max_depth=%d)", self.config.start_url, self.config.max_depth
        )
        start = time.monotonic()
        self.frontier.seed(str(self.config.start_url), include_www=self.config.seed_www)
        workers = [
            asyncio.create_task(self._worker(n)) for n in range(self.config.concurrency)
        ]
        try:
            await self.frontier.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        report = self.aggregator.finalize(visited=len(self.frontier))
        self.logger.debug("Duplicate links dropped: %d", self.frontier.duplicates)
        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d страниц за %.2f с (%.2f стр/с)",
            len(report.records),
            duration,
            len(report.records) / duration if duration else 0,
        )
        if report.fetch_failures or report.blocked_pages:
            self.logger.warning(
                "Failed: %d, blocked: %d", report.fetch_failures, report.blocked_pages
            )
        return report

    async def _worker(self, n: int) -> None:
        while True:
            task = await self.frontier.next_pending()
            try:
                await self._process(task)
            except Exception:
                self.logger.exception("Worker %d crashed on %s", n, task.url)
                self.aggregator.record_failure()
            finally:
                self.frontier.task_done()

    async def _process(self, task: CrawlTask) -> None:
        try:
            page = await self.fetcher.fetch(task)
        except FetchFailure as exc:
            self.logger.warning("❌ %s", exc)
            self.aggregator.record_failure()
            return

        try:
            record = build_record(page, task.depth, self.config.block_signatures)
        except BlockedPage as exc:
            self.logger.warning("Blocked: %s", exc)
            self.aggregator.record_blocked()
            return

        self.aggregator.add(record)
        self.logger.info("✅ Crawled: %s", page.url)

        admitted = sum(
            self.frontier.submit(child)
            for child in self.scope.filter_links(page.links, page.url, task.depth)
        )
        self.logger.debug("%s: %d new links", page.url, admitted)


async def crawl_site(config: CrawlerConfig, fetcher: Optional[PageFetcher] = None) -> CrawlReport:
    """Run the crawler inside its context and return the report."""
    async with AsyncCrawler(config, fetcher) as crawler:
        return await crawler.crawl()


__all__ = ("AsyncCrawler", "make_fetcher", "crawl_site")
