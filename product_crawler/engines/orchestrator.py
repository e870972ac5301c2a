from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

from ..errors import describe_error
from ..renderers.base import RendererFactory, renderer_factory_from_config
from ..utils.parsing import URLClassifier
from .base import CrawlEngine, DomainOutcome, DomainTask, RunResult
from .domain_crawler import DomainCrawler
from .reveal import ContentRevealer

if TYPE_CHECKING:
    from ..config import CrawlConfig

logger = logging.getLogger(__name__)


class Orchestrator(CrawlEngine):
    """
    Runs one DomainCrawler per task under a global concurrency cap.
    - Each task gets a fresh renderer session from ``renderer_factory``.
    - Settle-all: a failing domain never cancels or delays the others.
    """
    def __init__(self, renderer_factory: RendererFactory, crawler: Optional[DomainCrawler] = None) -> None:
        self.renderer_factory = renderer_factory
        self.crawler = crawler or DomainCrawler()
        self.last_outcomes: List[DomainOutcome] = []

    @classmethod
    def from_config(cls, cfg: "CrawlConfig") -> "Orchestrator":
        """Wire renderer factory, classifier and revealer from ``cfg``."""
        crawler = DomainCrawler(
            classifier=URLClassifier(cfg.product_patterns),
            revealer=ContentRevealer(
                settle_delay=cfg.reveal_settle_delay,
                click_settle_delay=cfg.click_settle_delay,
            ),
            navigation_timeout_ms=cfg.navigation_timeout_ms,
        )
        return cls(renderer_factory_from_config(cfg), crawler=crawler)

    async def run_all(self, tasks: Sequence[DomainTask], concurrency_limit: int) -> RunResult:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        names = [t.domain_name for t in tasks]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate domain names: {', '.join(duplicates)}")

        sem = asyncio.Semaphore(concurrency_limit)

        async def run_one(task: DomainTask) -> DomainOutcome:
            async with sem:
                return await self._crawl_domain(task)

        outcomes = await asyncio.gather(*(run_one(t) for t in tasks))
        self.last_outcomes = list(outcomes)

        run: RunResult = {}
        for outcome in outcomes:
            run[outcome.task.domain_name] = outcome.to_result()
        return run

    async def _crawl_domain(self, task: DomainTask) -> DomainOutcome:
        try:
            renderer = self.renderer_factory(task)
            result = await self.crawler.crawl(task, renderer)
        except Exception as exc:  # isolate the domain; siblings keep running
            reason = describe_error(exc)
            logger.error("%s failed: %s", task.domain_name, reason)
            return DomainOutcome(task=task, error=reason)
        return DomainOutcome(task=task, result=result)
