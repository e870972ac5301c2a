from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence, Tuple

from ..errors import NavigationError

if TYPE_CHECKING:
    from ..config import CrawlConfig


@dataclass
class StubPage:
    """One page of a fake site."""

    links: Sequence[str] = ()
    lazy: bool = False
    # Successive values returned by measure_scroll_extent; the last one repeats.
    extents: Sequence[float] = (0,)
    control_selector: Optional[str] = None
    # Control label before each click; the control disappears once every label was clicked through.
    labels: Sequence[str] = ()
    in_viewport: bool = True
    # Links that only appear after at least one scroll or click.
    revealed_links: Sequence[str] = ()
    # Raised from scroll/click/measure to simulate a reveal-time renderer fault.
    reveal_error: Optional[str] = None


@dataclass
class ConcurrencyProbe:
    """Counts renderer sessions open at the same time."""

    active: int = 0
    peak: int = 0
    opened: int = 0

    def enter(self) -> None:
        self.active += 1
        self.opened += 1
        self.peak = max(self.peak, self.active)

    def leave(self) -> None:
        self.active -= 1


@dataclass(frozen=True)
class StubElement:
    selector: str


class StubRenderer:
    """
    Deterministic renderer over an in-memory link graph, keyed by URL.
    Every interaction is appended to ``calls`` for assertions.
    """

    def __init__(
        self,
        pages: Optional[Mapping[str, StubPage]] = None,
        *,
        fail_navigation: Optional[str] = None,
        fail_open: Optional[str] = None,
        fail_extract: Optional[str] = None,
        delay: float = 0.0,
        probe: Optional[ConcurrencyProbe] = None,
    ) -> None:
        self.pages: Dict[str, StubPage] = dict(pages or {})
        self.fail_navigation = fail_navigation
        self.fail_open = fail_open
        self.fail_extract = fail_extract
        self.delay = delay
        self.probe = probe
        self.calls: List[Tuple[str, str]] = []
        self.is_open = False
        self.closed = False
        self._current: Optional[StubPage] = None
        self._measure_count = 0
        self._label_cursor = 0
        self._revealed = False

    @classmethod
    def from_config(cls, cfg: "CrawlConfig") -> "StubRenderer":
        return cls()

    # ---- Session ----

    async def open(self) -> None:
        self.calls.append(("open", ""))
        if self.fail_open:
            raise RuntimeError(self.fail_open)
        self.is_open = True
        if self.probe:
            self.probe.enter()

    async def close(self) -> None:
        self.calls.append(("close", ""))
        if self.is_open and self.probe:
            self.probe.leave()
        self.is_open = False
        self.closed = True

    # ---- Navigation ----

    @property
    def visited(self) -> List[str]:
        return [arg for name, arg in self.calls if name == "navigate"]

    def _page(self) -> StubPage:
        if self._current is None:
            raise RuntimeError("No page loaded")
        return self._current

    def _check_reveal_fault(self) -> None:
        page = self._page()
        if page.reveal_error:
            raise RuntimeError(page.reveal_error)

    async def navigate(self, url: str, timeout_ms: int) -> None:
        self.calls.append(("navigate", url))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_navigation:
            raise NavigationError(url, self.fail_navigation)
        page = self.pages.get(url)
        if page is None:
            raise NavigationError(url, f"404 Not Found: {url}")
        self._current = page
        self._measure_count = 0
        self._label_cursor = 0
        self._revealed = False

    # ---- Reveal ----

    async def has_lazy_load_signal(self) -> bool:
        return self._page().lazy

    async def find_element(self, selector: str) -> Optional[StubElement]:
        self.calls.append(("find_element", selector))
        page = self._page()
        if page.control_selector != selector or self._label_cursor >= len(page.labels):
            return None
        return StubElement(selector)

    async def read_label(self, element: StubElement) -> str:
        return self._page().labels[self._label_cursor]

    async def is_in_viewport(self, element: StubElement) -> bool:
        return self._page().in_viewport

    async def scroll_into_view(self, element: StubElement) -> None:
        self.calls.append(("scroll_into_view", element.selector))
        self._check_reveal_fault()

    async def click(self, element: StubElement) -> None:
        self.calls.append(("click", element.selector))
        self._check_reveal_fault()
        self._label_cursor += 1
        self._revealed = True

    async def scroll_to_bottom(self) -> None:
        self.calls.append(("scroll_to_bottom", ""))
        self._check_reveal_fault()
        self._revealed = True

    async def measure_scroll_extent(self) -> float:
        self._check_reveal_fault()
        extents = self._page().extents
        value = extents[min(self._measure_count, len(extents) - 1)]
        self._measure_count += 1
        return value

    # ---- Extraction ----

    async def extract_links(self) -> List[str]:
        if self.fail_extract:
            raise RuntimeError(self.fail_extract)
        page = self._page()
        links = list(page.links)
        if self._revealed:
            links.extend(page.revealed_links)
        return links
