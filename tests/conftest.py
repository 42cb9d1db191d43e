# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Dict, Iterable, List, Optional

import pytest
from aiohttp import web
from aiohttp.test_utils import unused_port

from site_sections.config import CrawlerConfig
from site_sections.crawler.link_extractor import extract_links
from site_sections.crawler.models import CrawlTask, PageFetchResult, PageRecord
from site_sections.crawler.session import SessionPool
from site_sections.errors import FetchFailure


class FakeFetcher:
    """In-memory fetch backend serving a fixed page graph keyed by normalized URL."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.calls: List[CrawlTask] = []
        self.sessions = SessionPool("TestAgent/1.0")
        self.entered = False

    async def __aenter__(self) -> "FakeFetcher":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.entered = False

    async def fetch(self, task: CrawlTask) -> PageFetchResult:
        self.calls.append(task)
        html = self.pages.get(task.url)
        if html is None:
            raise FetchFailure(task.url, "HTTP 404", 404)
        return PageFetchResult(
            url=task.url,
            html=html,
            links=extract_links(html),
            session=self.sessions.acquire(),
        )


class RecordingSink:
    """Sink double that keeps what it was asked to write."""

    def __init__(self, setup_error: Optional[Exception] = None) -> None:
        self.setup_error = setup_error
        self.validated = False
        self.written: Optional[List[PageRecord]] = None

    def validate(self) -> None:
        if self.setup_error is not None:
            raise self.setup_error
        self.validated = True

    def write(self, records) -> None:
        self.written = list(records)


def make_records(segments: Iterable[str]) -> List[PageRecord]:
    records = []
    for i, segment in enumerate(segments):
        record = PageRecord(
            url=f"https://example.com/{segment}/{i}",
            title=f"Page {i}",
            description="",
            depth=1,
            content_length=10,
        )
        record.set_section(segment)
        records.append(record)
    return records


@pytest.fixture()
def basic_config() -> CrawlerConfig:
    """
    Return a basic valid CrawlerConfig for crawler tests.
    """
    return CrawlerConfig(
        start_url="https://example.com",
        max_depth=1,
        concurrency=3,
        retry_times=0,
        timeout=2.0,
        user_agent="TestAgent/1.0",
        sink="json",
    )


@pytest.fixture()
def page_graph() -> Dict[str, str]:
    """``/ -> /a, /b`` and ``/a -> /c`` plus noise links that must be ignored."""
    return {
        "https://example.com/": (
            "<html><head><title>Home</title></head><body>"
            '<a href="/a">A</a>'
            '<a href="/b#top">B</a>'
            '<a href="/a?utm=1">A again</a>'
            '<a href="https://other-domain.com/x">X</a>'
            '<a href="mailto:info@example.com">mail</a>'
            "</body></html>"
        ),
        "https://example.com/a": '<title>A</title><a href="/c">C</a><a href="/">home</a>',
        "https://example.com/b": "<title>B</title>",
        "https://example.com/c": "<title>C</title>",
    }


async def serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on a free port, yield base URL, ensure cleanup."""
    port = unused_port()
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()
