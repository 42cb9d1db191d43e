# site_sections/crawler/fetcher.py
"""
Fetcher module: fetch backends with retry/backoff, timeout, header injection,
proxy/session rotation and a short random delay before each page.

The crawler only depends on :class:`PageFetcher`; :class:`HttpFetcher` here
downloads static HTML with aiohttp, :class:`~site_sections.crawler.browser.BrowserFetcher`
renders pages in Playwright.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable, Dict, Optional, Protocol, Sequence, Tuple, Type

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_sections.config import CrawlerConfig
from site_sections.crawler.link_extractor import extract_links
from site_sections.crawler.models import CrawlTask, PageFetchResult
from site_sections.crawler.session import Session, SessionPool
from site_sections.errors import FetchFailure

__all__ = ("PageFetcher", "BaseFetcher", "HttpFetcher", "RetryableStatus")

logger = logging.getLogger("SiteSections")

HTML_TYPES = ("text/html", "application/xhtml+xml")


class PageFetcher(Protocol):
    """Capability the crawler needs from a backend."""

    async def __aenter__(self) -> "PageFetcher": ...

    async def __aexit__(self, exc_type, exc, tb) -> None: ...

    async def fetch(self, task: CrawlTask) -> PageFetchResult: ...


class RetryableStatus(Exception):
    """HTTP status worth another attempt (5xx, 429, 401/403 after rotation)."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"retryable status {status}")


class BaseFetcher:
    """Shared plumbing: sessions, headers, jitter and the retry loop."""

    RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)
    BLOCK_STATUS: Sequence[int] = (401, 403)

    def __init__(
        self,
        config: CrawlerConfig,
        sessions: Optional[SessionPool] = None,
        backoff_base: float = 1.0,
    ) -> None:
        self.config = config
        self.sessions = sessions or SessionPool(config.user_agent, config.proxy_urls)
        self.backoff_base = backoff_base

    def prepare_headers(self, session: Session) -> Dict[str, str]:
        """Request headers for *session*; override to inject more."""
        headers = dict(self.config.headers)
        headers["User-Agent"] = session.user_agent
        return headers

    async def humanize_delay(self) -> None:
        low, high = self.config.jitter_min, self.config.jitter_max
        if high > 0:
            await asyncio.sleep(random.uniform(low, high))

    def check_status(self, status: int, session: Session) -> None:
        if status in self.BLOCK_STATUS:
            session.mark_bad()
            raise RetryableStatus(status)
        if status in self.RETRY_STATUS:
            raise RetryableStatus(status)

    async def with_retries(
        self,
        task: CrawlTask,
        attempt: Callable[[Session], Awaitable[PageFetchResult]],
        retry_on: Tuple[Type[BaseException], ...],
    ) -> PageFetchResult:
        """Run *attempt* with a fresh session until it succeeds or retries run out."""
        attempts = 0
        while True:
            session = self.sessions.acquire()
            try:
                return await attempt(session)
            except (RetryableStatus, *retry_on) as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    status = exc.status if isinstance(exc, RetryableStatus) else None
                    raise FetchFailure(task.url, str(exc) or type(exc).__name__, status) from exc
                backoff = min(60.0, self.backoff_base * (2**attempts + random.random()))
                logger.debug(
                    "Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, task.url, backoff
                )
                await asyncio.sleep(backoff)


class HttpFetcher(BaseFetcher):
    """Static HTML over aiohttp."""

    def __init__(
        self,
        config: CrawlerConfig,
        sessions: Optional[SessionPool] = None,
        backoff_base: float = 1.0,
    ) -> None:
        super().__init__(config, sessions, backoff_base)
        self.client: Optional[ClientSession] = None

    async def __aenter__(self) -> HttpFetcher:
        self.client = ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            raise_for_status=False,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.client and not self.client.closed:
            await self.client.close()

    async def fetch(self, task: CrawlTask) -> PageFetchResult:
        if not self.client:
            raise RuntimeError("Session not initialized")
        await self.humanize_delay()
        return await self.with_retries(task, lambda s: self._get(task, s), (ClientError, asyncio.TimeoutError))

    async def _get(self, task: CrawlTask, session: Session) -> PageFetchResult:
        assert self.client is not None
        async with self.client.get(
            task.url, headers=self.prepare_headers(session), proxy=session.proxy_url
        ) as resp:
            self.check_status(resp.status, session)
            if resp.status >= 400:
                raise FetchFailure(task.url, f"HTTP {resp.status}", resp.status)
            mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
            if mime and mime not in HTML_TYPES:
                raise FetchFailure(task.url, f"not an HTML page ({mime})", resp.status)
            html = await resp.text(errors="replace")
            return PageFetchResult(
                url=str(resp.url),
                html=html,
                links=extract_links(html),
                session=session,
            )
