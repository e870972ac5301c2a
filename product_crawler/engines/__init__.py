from .base import CrawlEngine, CrawlResult, CrawlStats, DomainOutcome, DomainTask, FailedUrl, RunResult
from .domain_crawler import DomainCrawler
from .orchestrator import Orchestrator
from .reveal import ContentRevealer, RevealOutcome, RevealState

__all__ = [
    "ContentRevealer",
    "CrawlEngine",
    "CrawlResult",
    "CrawlStats",
    "DomainCrawler",
    "DomainOutcome",
    "DomainTask",
    "FailedUrl",
    "Orchestrator",
    "RevealOutcome",
    "RevealState",
    "RunResult",
]
