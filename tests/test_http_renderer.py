"""
Unit tests for the static HTTP renderer. HTML is installed directly and the
aiohttp fetch is mocked, so no network is used.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from product_crawler.engines.base import DomainTask
from product_crawler.engines.domain_crawler import DomainCrawler
from product_crawler.engines.reveal import ContentRevealer, RevealState
from product_crawler.errors import NavigationError
from product_crawler.renderers.http_renderer import HttpRenderer
from product_crawler.utils.http import fetch_text

PAGE = """
<html><body>
  <img src="a.jpg" loading="lazy">
  <a href="/products/shoe?size=9">Shoe</a>
  <a href="/c/bags">Bags</a>
  <button class="load-more">  Load more  </button>
</body></html>
"""


async def _no_sleep(_delay: float) -> None:
    return None


@pytest.mark.asyncio
async def test_dom_queries_on_loaded_html():
    renderer = HttpRenderer()
    renderer.load_html("https://shop.test/", PAGE)

    assert await renderer.has_lazy_load_signal() is True
    button = await renderer.find_element(".load-more")
    assert button is not None
    assert await renderer.read_label(button) == "Load more"
    assert await renderer.find_element(".missing") is None
    assert await renderer.extract_links() == ["https://shop.test/products/shoe?size=9", "https://shop.test/c/bags"]


@pytest.mark.asyncio
async def test_scroll_reveal_settles_immediately_on_static_pages():
    renderer = HttpRenderer()
    renderer.load_html("https://shop.test/", PAGE)
    outcome = await ContentRevealer(sleep=_no_sleep).scroll_reveal(renderer, 5)
    assert outcome.state is RevealState.STABLE
    assert outcome.attempts == 1


@pytest.mark.asyncio
async def test_click_reveal_ends_in_error_on_static_pages():
    renderer = HttpRenderer()
    renderer.load_html("https://shop.test/", PAGE)
    outcome = await ContentRevealer(sleep=_no_sleep).click_reveal(renderer, ".load-more", "Load more", 5)
    assert outcome.state is RevealState.ERROR


@pytest.mark.asyncio
async def test_navigate_uses_fetched_final_url_as_link_base():
    renderer = HttpRenderer()
    await renderer.open()
    try:
        with patch(
            "product_crawler.renderers.http_renderer.fetch_text",
            AsyncMock(return_value=("https://shop.test/en/", '<a href="p/1">x</a>')),
        ) as fetch:
            await renderer.navigate("https://shop.test/", 5000)
        assert fetch.await_args.kwargs["timeout"] == 5.0
        assert await renderer.extract_links() == ["https://shop.test/en/p/1"]
    finally:
        await renderer.close()


@pytest.mark.asyncio
async def test_navigate_requires_open_session():
    with pytest.raises(RuntimeError):
        await HttpRenderer().navigate("https://shop.test/", 1000)


@pytest.mark.asyncio
async def test_crawler_runs_end_to_end_on_http_renderer():
    pages = {
        "https://shop.test/": '<a href="/c/bags">Bags</a><a href="/products/a">A</a>',
        "https://shop.test/c/bags": '<a href="/products/b">B</a><a href="https://elsewhere.test/">x</a>',
    }

    async def fake_fetch(session, url, *, timeout, user_agent):
        if url not in pages:
            raise NavigationError(url, "HTTP 404 Not Found")
        return url, pages[url]

    with patch("product_crawler.renderers.http_renderer.fetch_text", fake_fetch):
        result = await DomainCrawler(revealer=ContentRevealer(sleep=_no_sleep)).crawl(
            DomainTask(root_url="https://shop.test/"), HttpRenderer()
        )

    assert result.product_urls == ("https://shop.test/products/a", "https://shop.test/products/b")
    assert result.visited_count == 2


# --- fetch_text error mapping ---


class _FailingSession:
    def __init__(self, exc: BaseException) -> None:
        self.exc = exc

    def get(self, *args, **kwargs):
        raise self.exc


@pytest.mark.asyncio
async def test_fetch_text_maps_timeout_to_navigation_error():
    with pytest.raises(NavigationError, match="timeout"):
        await fetch_text(_FailingSession(asyncio.TimeoutError()), "https://shop.test/", timeout=2)


@pytest.mark.asyncio
async def test_fetch_text_maps_client_errors_to_navigation_error():
    with pytest.raises(NavigationError) as info:
        await fetch_text(_FailingSession(aiohttp.ClientConnectionError("refused")), "https://shop.test/")
    assert info.value.url == "https://shop.test/"
    assert info.value.reason == "refused"


class _FakeResponse:
    def __init__(self, url: str, body: bytes, content_type: str = "text/html") -> None:
        self.url = url
        self.body = body
        self.content_type = content_type

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def raise_for_status(self) -> None:
        return None

    async def text(self) -> str:
        return self.body.decode("utf-8")


class _FakeSession:
    def __init__(self, site: dict) -> None:
        self.site = site
        self.closed = False

    def get(self, url, **kwargs):
        body, content_type = self.site[url]
        return _FakeResponse(url, body, content_type)

    async def close(self) -> None:
        self.closed = True


BINARY_PDF = b"%PDF-1.4\n\xff\xfe\x00\x01binary"


@pytest.mark.asyncio
async def test_fetch_text_maps_undecodable_body_to_navigation_error():
    session = _FakeSession({"https://shop.test/catalog.pdf": (BINARY_PDF, "application/pdf")})

    with pytest.raises(NavigationError) as info:
        await fetch_text(session, "https://shop.test/catalog.pdf")
    assert info.value.url == "https://shop.test/catalog.pdf"
    assert "application/pdf" in info.value.reason


@pytest.mark.asyncio
async def test_binary_link_is_recorded_without_losing_the_domain():
    session = _FakeSession(
        {
            "https://shop.test/": (
                b'<a href="/products/a">A</a><a href="/catalog.pdf">PDF</a><a href="/c/x">X</a>',
                "text/html",
            ),
            "https://shop.test/catalog.pdf": (BINARY_PDF, "application/pdf"),
            "https://shop.test/c/x": (b'<a href="/products/b">B</a>', "text/html"),
        }
    )

    with patch("product_crawler.renderers.http_renderer.create_session", return_value=session):
        result = await DomainCrawler(revealer=ContentRevealer(sleep=_no_sleep)).crawl(
            DomainTask(root_url="https://shop.test/"), HttpRenderer()
        )

    assert result.product_urls == ("https://shop.test/products/a", "https://shop.test/products/b")
    assert [f.url for f in result.failed_urls] == ["https://shop.test/catalog.pdf"]
    assert result.visited_count == 3
    assert session.closed
