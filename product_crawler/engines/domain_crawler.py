from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Set

from ..errors import DomainFatalError, NavigationError, describe_error
from ..renderers.base import Renderer
from ..utils.parsing import URLClassifier
from .base import CrawlResult, DomainTask, FailedUrl
from .reveal import ContentRevealer, RevealOutcome

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT_MS = 30_000


class DomainCrawler:
    """
    Breadth-first traversal of a single domain, one page at a time.

    - Renderer owns navigation and DOM access.
    - ContentRevealer exposes lazy / paginated content before extraction.
    - URLClassifier decides what is a product and what is followed.
    Frontier and visited state live only for the duration of one ``crawl``.
    """

    def __init__(
        self,
        classifier: Optional[URLClassifier] = None,
        revealer: Optional[ContentRevealer] = None,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
    ) -> None:
        self.classifier = classifier or URLClassifier()
        self.revealer = revealer or ContentRevealer()
        self.navigation_timeout_ms = navigation_timeout_ms

    async def crawl(self, task: DomainTask, renderer: Renderer) -> CrawlResult:
        """
        Crawl ``task`` using ``renderer`` as its only session. The session is
        opened here and closed on every exit path. Navigation failures are
        recorded; any other renderer failure is raised as DomainFatalError.
        """
        name = task.domain_name
        logger.info("[Crawling Started] %s", name)
        try:
            await renderer.open()
            result = await self._traverse(task, renderer)
        except DomainFatalError:
            raise
        except Exception as exc:
            raise DomainFatalError(name, describe_error(exc)) from exc
        finally:
            await self._release(name, renderer)

        logger.info(
            "[Crawling Finished] %s: %d product URLs, %d failed, %d visited",
            name,
            len(result.product_urls),
            len(result.failed_urls),
            result.visited_count,
        )
        return result

    async def _release(self, name: str, renderer: Renderer) -> None:
        try:
            await renderer.close()
        except Exception as exc:
            # The crawl outcome stands even if teardown fails.
            logger.warning("Failed to close renderer for %s: %s", name, describe_error(exc))

    async def _traverse(self, task: DomainTask, renderer: Renderer) -> CrawlResult:
        classifier = self.classifier
        root_origin = classifier.origin(task.root_url)

        root = classifier.normalize(task.root_url)
        frontier: Deque[str] = deque([root])
        queued: Set[str] = {root}  # ever enqueued; bounds the frontier
        visited: Set[str] = set()
        products: Dict[str, None] = {}  # insertion-ordered set
        failed: List[FailedUrl] = []

        while frontier:
            url = frontier.popleft()
            if url in visited:
                continue
            visited.add(url)
            logger.info("[Visiting] %s", url)

            try:
                await renderer.navigate(url, self.navigation_timeout_ms)
            except NavigationError as exc:
                logger.warning("Failed to crawl %s: %s", url, exc.reason)
                failed.append(FailedUrl(url=url, reason=exc.reason))
                continue

            await self._reveal(task, renderer)

            links = await renderer.extract_links()
            logger.debug("[Found Links] %d links on %s", len(links), url)

            for link in links:
                normalized = classifier.normalize(link)
                if classifier.is_product(normalized):
                    products.setdefault(normalized, None)
                elif normalized not in queued and classifier.same_origin(normalized, root_origin):
                    queued.add(normalized)
                    frontier.append(normalized)

        return CrawlResult(
            domain_name=task.domain_name,
            product_urls=tuple(products),
            failed_urls=tuple(failed),
            visited_count=len(visited),
        )

    async def _reveal(self, task: DomainTask, renderer: Renderer) -> Optional[RevealOutcome]:
        """Run the scroll or click reveal for the current page. Never raises."""
        try:
            if await renderer.has_lazy_load_signal():
                logger.info("[Lazy Loading Detected] Scrolling to load more content")
                outcome = await self.revealer.scroll_reveal(renderer, task.max_reveal_attempts)
            elif task.reveal_selector and await renderer.find_element(task.reveal_selector) is not None:
                logger.info("[Load More Control Detected] Clicking to load more content")
                outcome = await self.revealer.click_reveal(
                    renderer,
                    task.reveal_selector,
                    task.reveal_expected_label,
                    task.max_reveal_attempts,
                )
            else:
                return None
        except Exception as exc:
            logger.warning("Reveal detection failed, extracting links as-is: %s", describe_error(exc))
            return None

        logger.debug("[Reveal] Finished in state %s after %d attempt(s)", outcome.state.value, outcome.attempts)
        return outcome
