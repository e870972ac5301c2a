from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional, Protocol

if TYPE_CHECKING:
    from ..config import CrawlConfig
    from ..engines.base import DomainTask

#: Opaque handle for a DOM element; only the renderer that produced it understands it.
ElementHandle = Any

#: JS-free signal that a page loads more content on scroll.
LAZY_LOAD_SELECTOR = 'img[loading="lazy"], [data-lazy]'


class Renderer(Protocol):
    """
    Capability the crawl core needs from a page-rendering engine.
    One instance is one session, owned by a single domain crawl.
    """

    async def open(self) -> None:
        """Acquire the underlying session (browser, HTTP client...)."""
        ...

    async def navigate(self, url: str, timeout_ms: int) -> None:
        """Load ``url``. Raises NavigationError on timeout or network failure."""
        ...

    async def has_lazy_load_signal(self) -> bool:
        ...

    async def find_element(self, selector: str) -> Optional[ElementHandle]:
        ...

    async def read_label(self, element: ElementHandle) -> str:
        ...

    async def is_in_viewport(self, element: ElementHandle) -> bool:
        ...

    async def scroll_into_view(self, element: ElementHandle) -> None:
        ...

    async def click(self, element: ElementHandle) -> None:
        ...

    async def scroll_to_bottom(self) -> None:
        ...

    async def measure_scroll_extent(self) -> float:
        ...

    async def extract_links(self) -> List[str]:
        """Absolute link targets of the current page, in document order."""
        ...

    async def close(self) -> None:
        """Release the session. Must be safe to call after a failed ``open``."""
        ...


RendererFactory = Callable[["DomainTask"], Renderer]


def renderer_factory_from_config(cfg: "CrawlConfig") -> RendererFactory:
    """
    Resolve ``cfg.renderer`` to a class and return a factory that builds a fresh
    session per domain task.
    """
    from ..utils.loader import load_symbol

    renderer_cls = load_symbol(cfg.renderer)

    def factory(task: "DomainTask") -> Renderer:
        return renderer_cls.from_config(cfg)

    return factory
