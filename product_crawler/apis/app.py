from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging

try:
    from fastapi import FastAPI, HTTPException
    from pydantic import BaseModel
except ImportError as exc:  # pragma: no cover - optional dependency
    raise RuntimeError(
        "FastAPI not installed. Install with `pip install 'product-crawler[api]'` "
        "or avoid using the API server."
    ) from exc

from ..config import CrawlConfig, DomainConfig
from ..engines.base import RunResult
from ..engines.orchestrator import Orchestrator
from ..version import __version__

logger = logging.getLogger(__name__)

app = FastAPI(title="product_crawler API", version=__version__)


class DomainRequest(BaseModel):
    root_url: str
    reveal_selector: Optional[str] = None
    reveal_expected_label: Optional[str] = None
    name: Optional[str] = None


class CrawlRequest(BaseModel):
    domains: List[DomainRequest]
    concurrency_limit: Optional[int] = None
    max_reveal_attempts: Optional[int] = None
    reveal_settle_delay: Optional[float] = None
    click_settle_delay: Optional[float] = None
    navigation_timeout: Optional[float] = None
    product_patterns: Optional[List[str]] = None
    renderer: Optional[str] = None


def _build_config(req: CrawlRequest) -> CrawlConfig:
    cfg = CrawlConfig.from_env()
    cfg.domains = [
        DomainConfig(
            root_url=d.root_url,
            reveal_selector=d.reveal_selector,
            reveal_expected_label=d.reveal_expected_label,
            name=d.name,
        )
        for d in req.domains
    ]
    for key in (
        "concurrency_limit",
        "max_reveal_attempts",
        "reveal_settle_delay",
        "click_settle_delay",
        "navigation_timeout",
        "product_patterns",
        "renderer",
    ):
        value = getattr(req, key)
        if value is not None:
            setattr(cfg, key, value)
    cfg.validate()
    return cfg


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/crawl")
async def crawl(req: CrawlRequest) -> Dict[str, Any]:
    try:
        cfg = _build_config(req)
        orchestrator = Orchestrator.from_config(cfg)
    except (ValueError, ImportError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    run: RunResult = await orchestrator.run_all(cfg.to_tasks(), cfg.concurrency_limit)
    logger.info("API crawl finished for %d domain(s)", len(run))
    return {domain: result.to_dict() for domain, result in run.items()}
