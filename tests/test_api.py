"""
API tests for the FastAPI app, using the stub renderer so no browser is launched.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from product_crawler.apis.app import app

STUB = "product_crawler.renderers.stub:StubRenderer"


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setenv("CRAWLER_OUTPUT_DIR", str(tmp_path))
    monkeypatch.delenv("CRAWLER_DOMAINS", raising=False)
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_crawl_returns_an_entry_per_domain(client):
    # The stub renderer built from config has no pages, so every root fails to load.
    response = client.post(
        "/crawl",
        json={
            "domains": [{"root_url": "https://a.test/"}, {"root_url": "https://b.test/", "name": "b"}],
            "renderer": STUB,
            "concurrency_limit": 2,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"https://a.test/", "b"}
    assert body["b"] == {
        "product_urls": [],
        "failed_urls": [{"url": "https://b.test/", "reason": "404 Not Found: https://b.test/"}],
        "visited_count": 1,
    }


def test_crawl_rejects_invalid_config(client):
    response = client.post(
        "/crawl",
        json={"domains": [{"root_url": "https://a.test/"}], "renderer": STUB, "concurrency_limit": 0},
    )
    assert response.status_code == 422
    assert "concurrency_limit" in response.json()["detail"]


def test_crawl_rejects_unknown_renderer(client):
    response = client.post(
        "/crawl",
        json={"domains": [{"root_url": "https://a.test/"}], "renderer": "product_crawler.nope:Renderer"},
    )
    assert response.status_code == 422
