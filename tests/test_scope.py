# File: tests/test_scope.py
import pytest

from site_sections.crawler.scope import ScopeFilter, normalize_hostname, normalize_url, primary_segment
from site_sections.errors import LinkRejected

PAGE = "https://www.example.com/productos/index.html"


@pytest.fixture()
def scope() -> ScopeFilter:
    return ScopeFilter("https://example.com", max_depth=2)


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://Example.COM", "https://example.com/"),
        ("HTTPS://example.com:443/a?b=1#frag", "https://example.com/a"),
        ("http://example.com:8080/a/", "http://example.com:8080/a/"),
        ("https://example.com/A/B", "https://example.com/A/B"),
    ],
)
def test_normalize_url(url, expected):
    assert normalize_url(url) == expected


@pytest.mark.parametrize("url", ["mailto:a@example.com", "ftp://example.com/x", "https:///path"])
def test_normalize_url_rejects_non_http(url):
    with pytest.raises(ValueError):
        normalize_url(url)


def test_normalize_hostname_strips_single_www():
    assert normalize_hostname("WWW.Example.com") == "example.com"
    assert normalize_hostname("blog.example.com") == "blog.example.com"


@pytest.mark.parametrize(
    "url,segment",
    [
        ("https://example.com/", ""),
        ("https://example.com", ""),
        ("https://example.com//Personas/cuentas", "personas"),
        ("https://example.com/empresas?x=1", "empresas"),
    ],
)
def test_primary_segment(url, segment):
    assert primary_segment(url) == segment


def test_relative_link_is_resolved_and_stripped(scope):
    task = scope.check("../personas/credito?utm=x#top", PAGE, current_depth=0)
    assert task.url == "https://www.example.com/personas/credito"
    assert task.depth == 1


def test_www_and_case_variants_are_in_scope(scope):
    task = scope.check("HTTPS://WWW.EXAMPLE.COM/Empresas", PAGE, current_depth=1)
    assert task.url == "https://www.example.com/Empresas"
    assert task.depth == 2


@pytest.mark.parametrize(
    "link",
    [
        "https://other-domain.com/x",
        "https://blog.example.com/post",
        "https://example.com.evil.net/",
        "mailto:info@example.com",
        "javascript:void(0)",
        "http://[::1",
        "http://example.com:99999/",
    ],
)
def test_rejected_links(scope, link):
    with pytest.raises(LinkRejected):
        scope.check(link, PAGE, current_depth=0)


@pytest.mark.parametrize("depth", [0, 1, 2, 5])
def test_other_domain_rejected_at_any_depth(depth):
    scope = ScopeFilter("https://example.com", max_depth=10)
    with pytest.raises(LinkRejected):
        scope.check("https://other-domain.com/x", PAGE, current_depth=depth)


def test_depth_budget(scope):
    assert scope.check("/a", PAGE, current_depth=1).depth == 2
    with pytest.raises(LinkRejected) as info:
        scope.check("/a", PAGE, current_depth=2)
    assert "depth" in info.value.reason


def test_filter_links_drops_rejections_silently(scope):
    links = ["/a", "/a#x", "https://other-domain.com/", "mailto:x@example.com", "/b?page=2"]
    tasks = list(scope.filter_links(links, PAGE, current_depth=0))
    assert [t.url for t in tasks] == [
        "https://www.example.com/a",
        "https://www.example.com/a",
        "https://www.example.com/b",
    ]
    assert all(t.depth == 1 for t in tasks)


def test_filter_links_at_max_depth_spawns_nothing(scope):
    assert list(scope.filter_links(["/a", "/b"], PAGE, current_depth=2)) == []


def test_scope_requires_host():
    with pytest.raises(ValueError):
        ScopeFilter("/relative/only", max_depth=1)
