"""
Unit tests for URL normalization, origin comparison and product classification.
"""

from __future__ import annotations

import pytest

from product_crawler.utils.parsing import (
    URLClassifier,
    extract_links,
    is_product_url,
    normalize_url,
    url_origin,
)

# --- normalize_url ---


def test_normalize_strips_query_and_fragment():
    assert normalize_url("https://shop.test/a/b?x=1&y=2#top") == "https://shop.test/a/b"


def test_normalize_lowercases_scheme_and_host_and_drops_default_port():
    assert normalize_url("HTTPS://Shop.Test:443/Path") == "https://shop.test/Path"
    assert normalize_url("http://shop.test:80/") == "http://shop.test/"


def test_normalize_keeps_non_default_port():
    assert normalize_url("http://shop.test:8080/x?q") == "http://shop.test:8080/x"


def test_normalize_empty_path_becomes_slash():
    assert normalize_url("https://shop.test") == "https://shop.test/"
    assert normalize_url("https://shop.test?page=2") == "https://shop.test/"


@pytest.mark.parametrize(
    "raw",
    ["/relative/path", "mailto:sales@shop.test", "javascript:void(0)", "not a url", "", "http://shop.test:99999/"],
)
def test_normalize_passes_unparsable_input_through(raw):
    assert normalize_url(raw) == raw


@pytest.mark.parametrize(
    "raw",
    [
        "https://Shop.Test:443/products/shoe?color=red#reviews",
        "http://shop.test",
        "http://[::1]:8000/p/1?x",
        "https://user:pw@shop.test/a",
        "mailto:x@y",
        "garbage",
    ],
)
def test_normalize_is_idempotent(raw):
    once = normalize_url(raw)
    assert normalize_url(once) == once


# --- url_origin ---


def test_origin_fills_default_ports():
    assert url_origin("https://shop.test/a") == ("https", "shop.test", 443)
    assert url_origin("https://SHOP.test:443/b") == ("https", "shop.test", 443)
    assert url_origin("http://shop.test:8080") == ("http", "shop.test", 8080)


def test_origin_is_none_for_unparsable():
    assert url_origin("/relative") is None
    assert url_origin("mailto:a@b.c") is None


def test_same_origin_rejects_other_scheme_host_or_port():
    c = URLClassifier()
    root = c.origin("https://shop.test/")
    assert c.same_origin("https://shop.test/category/shoes", root)
    assert not c.same_origin("http://shop.test/category/shoes", root)
    assert not c.same_origin("https://cdn.shop.test/x", root)
    assert not c.same_origin("https://shop.test:8443/x", root)
    assert not c.same_origin("javascript:void(0)", root)
    assert not c.same_origin("https://shop.test/x", None)


# --- is_product ---


@pytest.mark.parametrize(
    "url",
    [
        "https://shop.test/products/red-shoe",
        "https://shop.test/en/product/123",
        "https://shop.test/p/123",
        "https://shop.test/item/abc",
        "https://shop.test/p-4411",
        "https://shop.test/shoes/p-4411-red",
        "https://shop.test/PRODUCTS/Red",
        "https://shop.test/products/red?variant=2",
    ],
)
def test_is_product_matches_default_patterns(url):
    assert is_product_url(url)


@pytest.mark.parametrize(
    "url",
    [
        "https://shop.test/",
        "https://shop.test/collections/shoes",
        "https://shop.test/products",
        "https://shop.test/shop/pages/about",
        "https://shop.test/search?product=123",
        "https://shop.test/catalog#/products/1",
    ],
)
def test_is_product_rejects_traversal_links(url):
    assert not is_product_url(url)


def test_custom_product_patterns():
    c = URLClassifier([r"/dp/[A-Z0-9]{10}"])
    assert c.is_product("https://shop.test/gp/dp/B000123456")
    assert not c.is_product("https://shop.test/products/red-shoe")


# --- extract_links ---


def test_extract_links_resolves_relative_hrefs_in_document_order():
    html = """
    <html><body>
      <a href="/b">B</a>
      <a href="https://other.test/c">C</a>
      <a>no href</a>
      <a href="a?x=1">A</a>
      <a href="/b">B again</a>
    </body></html>
    """
    links = extract_links(html, "https://shop.test/dir/page")
    assert links == [
        "https://shop.test/b",
        "https://other.test/c",
        "https://shop.test/dir/a?x=1",
        "https://shop.test/b",
    ]
