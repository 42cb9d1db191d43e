# File: site_sections/engine.py
"""site_sections.engine: orchestration layer (sink check, crawl, export)."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_sections.aggregator import CrawlReport
from site_sections.config import CrawlerConfig
from site_sections.crawler.crawler import crawl_site
from site_sections.crawler.fetcher import PageFetcher
from site_sections.errors import ExportFailure, SetupError
from site_sections.logger import logger
from site_sections.sinks import Sink, make_sink

__all__ = ["Engine", "run_crawl"]

class Engine:
    """Facade for the CLI and tests: validate the sink, crawl, export the results."""

    def __init__(
        self,
        config: CrawlerConfig,
        sink: Optional[Sink] = None,
        fetcher: Optional[PageFetcher] = None,
    ) -> None:
        self.config = config
        self.sink = sink if sink is not None else make_sink(config)
        self.fetcher = fetcher

    def run(self, timeout: Optional[float] = None) -> CrawlReport:
        """Setup check, crawl to quiescence, export. Setup/export errors are fatal."""
        try:
            self.sink.validate()
        except SetupError as exc:
            logger.error("Setup failed: %s", exc)
            raise

        logger.info("Starting crawl…")
        crawl = crawl_site(self.config, self.fetcher)
        try:
            report = asyncio.run(asyncio.wait_for(crawl, timeout=timeout) if timeout else crawl)
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", timeout)
            raise

        logger.info(
            "Found %d pages (%d URLs admitted, %d failed, %d blocked), sections: %s",
            len(report.records),
            report.visited,
            report.fetch_failures,
            report.blocked_pages,
            ", ".join(report.sections) or "-",
        )

        try:
            self.sink.write(report.records)
        except ExportFailure as exc:
            logger.error("Export failed: %s", exc)
            raise
        return report

def run_crawl(config: CrawlerConfig, timeout: Optional[float] = None) -> CrawlReport:
    """Run the full cycle with the sink selected by *config*."""
    return Engine(config).run(timeout=timeout)
