# site_sections/crawler/browser.py
"""
Browser-based fetch backend using Playwright for JavaScript-rendered pages.

Playwright is an optional extra (``pip install site-sections[browser]``);
it is imported when the backend is entered, so the static backend works
without it.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from site_sections.config import CrawlerConfig
from site_sections.crawler.fetcher import BaseFetcher
from site_sections.crawler.models import CrawlTask, PageFetchResult
from site_sections.crawler.session import Session, SessionPool
from site_sections.errors import FetchFailure, SetupError

__all__ = ("BrowserFetcher",)

logger = logging.getLogger("SiteSections")

_LINKS_JS = "els => els.map(e => e.getAttribute('href'))"


class BrowserFetcher(BaseFetcher):
    """
    Render each task in an isolated Chromium context:

        async with BrowserFetcher(config) as fetcher:
            result = await fetcher.fetch(task)
    """

    def __init__(
        self,
        config: CrawlerConfig,
        sessions: Optional[SessionPool] = None,
        backoff_base: float = 1.0,
    ) -> None:
        super().__init__(config, sessions, backoff_base)
        self._playwright: Any = None
        self._browser: Any = None
        self._errors: tuple = (asyncio.TimeoutError,)

    async def __aenter__(self) -> BrowserFetcher:
        try:
            from playwright.async_api import Error as PlaywrightError
            from playwright.async_api import async_playwright
        except ImportError as exc:
            raise SetupError(
                "Playwright is required for the browser backend. "
                "Install with: pip install 'site-sections[browser]'"
            ) from exc

        self._errors = (PlaywrightError, asyncio.TimeoutError)
        logger.info("Launching chromium (headless=%s)", self.config.headless)
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=list(self.config.launch_args),
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    async def fetch(self, task: CrawlTask) -> PageFetchResult:
        if not self._browser:
            raise RuntimeError(
                "Browser is not running. Use BrowserFetcher as an async context manager."
            )
        return await self.with_retries(task, lambda s: self._render(task, s), self._errors)

    def _context_options(self, session: Session) -> Dict[str, Any]:
        headers = self.prepare_headers(session)
        options: Dict[str, Any] = {
            "user_agent": headers.pop("User-Agent"),
            "extra_http_headers": headers,
        }
        if session.proxy_url:
            options["proxy"] = {"server": session.proxy_url}
        return options

    async def _render(self, task: CrawlTask, session: Session) -> PageFetchResult:
        context = await self._browser.new_context(**self._context_options(session))
        try:
            page = await context.new_page()
            response = await page.goto(
                task.url,
                wait_until="domcontentloaded",
                timeout=self.config.timeout * 1000,
            )
            if response is not None:
                self.check_status(response.status, session)
                if response.status >= 400:
                    raise FetchFailure(task.url, f"HTTP {response.status}", response.status)
            await self.humanize_delay()
            html = await page.content()
            hrefs: List[Optional[str]] = await page.eval_on_selector_all("a[href]", _LINKS_JS)
            links = [h.strip() for h in hrefs if h and h.strip()]
            return PageFetchResult(url=page.url, html=html, links=links, session=session)
        finally:
            await context.close()
