from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

DEFAULT_MAX_REVEAL_ATTEMPTS = 20


@dataclass(frozen=True)
class DomainTask:
    """Immutable input for one domain crawl."""

    root_url: str
    reveal_selector: Optional[str] = None
    reveal_expected_label: Optional[str] = None
    max_reveal_attempts: int = DEFAULT_MAX_REVEAL_ATTEMPTS
    name: Optional[str] = None

    @property
    def domain_name(self) -> str:
        return self.name or self.root_url


@dataclass(frozen=True)
class FailedUrl:
    url: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "reason": self.reason}


@dataclass(frozen=True)
class CrawlResult:
    """Output of one domain crawl; product and failure order is discovery order."""

    domain_name: str
    product_urls: Tuple[str, ...] = ()
    failed_urls: Tuple[FailedUrl, ...] = ()
    visited_count: int = 0

    @classmethod
    def failed(cls, task: DomainTask, reason: str) -> "CrawlResult":
        return cls(
            domain_name=task.domain_name,
            failed_urls=(FailedUrl(url=task.root_url, reason=reason),),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_urls": list(self.product_urls),
            "failed_urls": [f.to_dict() for f in self.failed_urls],
            "visited_count": self.visited_count,
        }


#: Domain name -> CrawlResult, in task submission order.
RunResult = Dict[str, CrawlResult]


@dataclass(frozen=True)
class DomainOutcome:
    """Tagged result of one domain unit: exactly one of ``result`` / ``error`` is set."""

    task: DomainTask
    result: Optional[CrawlResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_result(self) -> CrawlResult:
        if self.result is not None:
            return self.result
        return CrawlResult.failed(self.task, self.error or "unknown error")


@dataclass
class CrawlStats:
    """Aggregate counters for a finished run, used for summaries."""

    domains: int = 0
    failed_domains: List[str] = field(default_factory=list)
    products: int = 0
    failed_urls: int = 0
    visited: int = 0

    @classmethod
    def from_run(cls, run: RunResult, outcomes: Sequence[DomainOutcome] = ()) -> "CrawlStats":
        return cls(
            domains=len(run),
            failed_domains=[o.task.domain_name for o in outcomes if not o.ok],
            products=sum(len(r.product_urls) for r in run.values()),
            failed_urls=sum(len(r.failed_urls) for r in run.values()),
            visited=sum(r.visited_count for r in run.values()),
        )


class CrawlEngine(ABC):
    """
    Abstract engine interface. Implementations own scheduling across domains.
    """
    @abstractmethod
    async def run_all(self, tasks: Sequence[DomainTask], concurrency_limit: int) -> RunResult:  # pragma: no cover - interface
        ...
