# File: tests/test_crawler.py
# Test-suite for the SiteSections async crawler
from __future__ import annotations

import asyncio
import time

import pytest
from aiohttp import web

from conftest import FakeFetcher, serve_app
from site_sections.aggregator import CrawlReport
from site_sections.config import CrawlerConfig
from site_sections.crawler.crawler import AsyncCrawler, crawl_site, make_fetcher
from site_sections.crawler.fetcher import HttpFetcher

#: number of seconds a “slow” handler sleeps in the concurrency test
SLOW_SLEEP: float = 0.5


async def run_crawler(config: CrawlerConfig, fetcher=None) -> CrawlReport:
    async with AsyncCrawler(config, fetcher) as crawler:
        return await asyncio.wait_for(crawler.crawl(), timeout=15)


def local_config(base: str, **overrides) -> CrawlerConfig:
    params = dict(
        start_url=base,
        max_depth=1,
        concurrency=3,
        retry_times=0,
        timeout=2.0,
        user_agent="TestAgent/1.0",
        sink="json",
    )
    params.update(overrides)
    return CrawlerConfig(**params)


# --------------------------------------------------------------------------- #
#                        In-memory page graph (FakeFetcher)                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_end_to_end_depth_one(basic_config, page_graph):
    fetcher = FakeFetcher(page_graph)
    report = await crawl_site(basic_config, fetcher)

    assert sorted(r.url for r in report.records) == [
        "https://example.com/",
        "https://example.com/a",
        "https://example.com/b",
    ]
    assert "https://example.com/c" not in {t.url for t in fetcher.calls}
    assert report.visited == 3
    assert report.fetch_failures == 0
    assert fetcher.entered is False


@pytest.mark.asyncio()
async def test_each_url_fetched_once(basic_config, page_graph):
    fetcher = FakeFetcher(page_graph)
    await crawl_site(basic_config.with_overrides(max_depth=3), fetcher)
    urls = [t.url for t in fetcher.calls]
    assert len(urls) == len(set(urls)) == 4


@pytest.mark.asyncio()
async def test_depth_bound(basic_config, page_graph):
    fetcher = FakeFetcher(page_graph)
    report = await crawl_site(basic_config.with_overrides(max_depth=2), fetcher)
    assert all(t.depth <= 2 for t in fetcher.calls)
    depths = {r.url: r.depth for r in report.records}
    assert depths["https://example.com/c"] == 2


@pytest.mark.asyncio()
async def test_depth_zero_fetches_only_seed(basic_config, page_graph):
    fetcher = FakeFetcher(page_graph)
    report = await crawl_site(basic_config.with_overrides(max_depth=0), fetcher)
    assert [r.url for r in report.records] == ["https://example.com/"]


@pytest.mark.asyncio()
async def test_sections_finalized_after_crawl(basic_config):
    pages = {
        "https://example.com/": '<a href="/personas/1">1</a><a href="/personas/2">2</a><a href="/empresas">e</a>',
        "https://example.com/personas/1": "<title>P1</title>",
        "https://example.com/personas/2": "<title>P2</title>",
        "https://example.com/empresas": "<title>E</title>",
    }
    report = await crawl_site(basic_config, FakeFetcher(pages))
    sections = {r.url: r.section for r in report.records}
    assert sections == {
        "https://example.com/": "",
        "https://example.com/personas/1": "personas",
        "https://example.com/personas/2": "personas",
        "https://example.com/empresas": "",
    }
    assert all(r.section == r.template for r in report.records)
    assert report.sections == {"personas": 2}


@pytest.mark.asyncio()
async def test_whitelist_config_applies(basic_config):
    pages = {
        "https://example.com/": '<a href="/empresas">e</a>',
        "https://example.com/empresas": "<title>E</title>",
    }
    config = basic_config.with_overrides(section_whitelist="empresas")
    report = await crawl_site(config, FakeFetcher(pages))
    assert {r.url: r.section for r in report.records}["https://example.com/empresas"] == "empresas"


@pytest.mark.asyncio()
async def test_blocked_page_not_recorded_and_not_retried(basic_config):
    pages = {
        "https://example.com/": '<a href="/a">a</a><a href="/b">b</a>',
        "https://example.com/a": "<p>Please complete the CAPTCHA</p><a href='/hidden'>h</a>",
        "https://example.com/b": "<title>B</title>",
    }
    fetcher = FakeFetcher(pages)
    report = await crawl_site(basic_config.with_overrides(max_depth=2), fetcher)

    assert sorted(r.url for r in report.records) == ["https://example.com/", "https://example.com/b"]
    assert report.blocked_pages == 1
    assert [t.url for t in fetcher.calls].count("https://example.com/a") == 1
    assert "https://example.com/hidden" not in {t.url for t in fetcher.calls}
    assert fetcher.sessions.bad_count == 1


@pytest.mark.asyncio()
async def test_fetch_failure_is_counted_not_fatal(basic_config):
    pages = {"https://example.com/": '<a href="/missing">m</a><a href="/ok">ok</a>', "https://example.com/ok": ""}
    report = await crawl_site(basic_config, FakeFetcher(pages))
    assert sorted(r.url for r in report.records) == ["https://example.com/", "https://example.com/ok"]
    assert report.fetch_failures == 1


@pytest.mark.asyncio()
async def test_seed_www_variant_crawled(basic_config):
    pages = {"https://example.com/": "<title>bare</title>", "https://www.example.com/": "<title>www</title>"}
    fetcher = FakeFetcher(pages)
    report = await crawl_site(basic_config.with_overrides(seed_www=True), fetcher)
    assert sorted(r.title for r in report.records) == ["bare", "www"]


def test_make_fetcher_selects_backend(basic_config):
    assert isinstance(make_fetcher(basic_config), HttpFetcher)
    browser = make_fetcher(basic_config.with_overrides(backend="browser"))
    assert type(browser).__name__ == "BrowserFetcher"


# --------------------------------------------------------------------------- #
#                         Real HTTP server (HttpFetcher)                      #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_http_crawl_end_to_end():
    app = web.Application()

    async def root(_):
        return web.Response(
            text='<title>Home</title><a href="/a">A</a><a href="/b?x=1">B</a><a href="http://other-domain.com/">X</a>',
            content_type="text/html",
        )

    async def page_a(_):
        return web.Response(
            text='<title>A</title><meta name="description" content="page a"><a href="/c">C</a>',
            content_type="text/html",
        )

    async def page_b(_):
        return web.Response(text="<title>B</title>", content_type="text/html")

    async def page_c(_):
        return web.Response(text="<title>C</title>", content_type="text/html")

    app.router.add_get("/", root)
    app.router.add_get("/a", page_a)
    app.router.add_get("/b", page_b)
    app.router.add_get("/c", page_c)

    async for base in serve_app(app):
        report = await run_crawler(local_config(base))

    by_url = {r.url: r for r in report.records}
    assert set(by_url) == {f"{base}/", f"{base}/a", f"{base}/b"}
    assert by_url[f"{base}/a"].description == "page a"
    assert by_url[f"{base}/a"].depth == 1
    assert by_url[f"{base}/"].title == "Home"


@pytest.mark.asyncio()
async def test_http_blocked_page():
    app = web.Application()

    async def root(_):
        return web.Response(text='<a href="/wall">wall</a>', content_type="text/html")

    async def wall(_):
        return web.Response(text="<h1>Radware Bot Manager Captcha</h1>", content_type="text/html")

    app.router.add_get("/", root)
    app.router.add_get("/wall", wall)

    async for base in serve_app(app):
        report = await run_crawler(local_config(base))

    assert [r.url for r in report.records] == [f"{base}/"]
    assert report.blocked_pages == 1


@pytest.mark.asyncio()
async def test_crawler_handles_404():
    app = web.Application()

    async def root(_):
        return web.Response(text='<a href="/missing">Broken Link</a>', content_type="text/html")

    app.router.add_get("/", root)

    async for base in serve_app(app):
        report = await run_crawler(local_config(base))

    assert [r.url for r in report.records] == [f"{base}/"]
    assert report.fetch_failures == 1


@pytest.mark.asyncio()
async def test_concurrency():
    """Ensure that two slow pages are fetched concurrently."""
    app = web.Application()

    async def slow(_):
        await asyncio.sleep(SLOW_SLEEP)
        return web.Response(text="<h1>Slow</h1>", content_type="text/html")

    async def root(_):
        return web.Response(
            text='<a href="/slow1">S1</a><a href="/slow2">S2</a>',
            content_type="text/html",
        )

    app.router.add_get("/", root)
    app.router.add_get("/slow1", slow)
    app.router.add_get("/slow2", slow)

    async for base in serve_app(app):
        start = time.perf_counter()
        report = await run_crawler(local_config(base, timeout=5.0))
        elapsed = time.perf_counter() - start

    assert elapsed < SLOW_SLEEP * 1.9
    urls = {r.url for r in report.records}
    assert f"{base}/slow1" in urls
    assert f"{base}/slow2" in urls


@pytest.mark.asyncio()
async def test_retry_on_server_error():
    app = web.Application()
    call_count = {"n": 0}

    async def flaky(_):
        call_count["n"] += 1
        if call_count["n"] <= 2:
            return web.Response(status=500)
        return web.Response(text="<h1>Recover</h1>", content_type="text/html")

    async def root(_):
        return web.Response(text='<a href="/flaky">Flaky</a>', content_type="text/html")

    app.router.add_get("/", root)
    app.router.add_get("/flaky", flaky)

    async for base in serve_app(app):
        config = local_config(base, retry_times=3)
        report = await run_crawler(config, HttpFetcher(config, backoff_base=0.01))

    assert f"{base}/flaky" in {r.url for r in report.records}
    assert call_count["n"] == 3
