from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from playwright.async_api import Browser, BrowserContext, ElementHandle, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..errors import NavigationError
from .base import LAZY_LOAD_SELECTOR

if TYPE_CHECKING:
    from ..config import CrawlConfig

logger = logging.getLogger(__name__)

_IN_VIEWPORT_JS = """
(el) => {
    const r = el.getBoundingClientRect();
    const h = window.innerHeight || document.documentElement.clientHeight;
    const w = window.innerWidth || document.documentElement.clientWidth;
    return r.bottom > 0 && r.right > 0 && r.top < h && r.left < w;
}
"""


def app_data_dir() -> Path:
    base = os.getenv("LOCALAPPDATA") or str(Path.home() / ".product-crawler")
    p = Path(base) / "product-crawler"
    p.mkdir(parents=True, exist_ok=True)
    return p


def ensure_browsers_path() -> str:
    """Point Playwright at a per-user browser cache unless the caller chose one."""
    return os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", str(app_data_dir() / "ms-playwright"))


class PlaywrightRenderer:
    """
    Renderer backed by headless Chromium. One instance owns one browser, one
    context and one page for the lifetime of a domain crawl.
    """

    def __init__(self, headless: bool = True, wait_until: str = "networkidle") -> None:
        self.headless = headless
        self.wait_until = wait_until
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @classmethod
    def from_config(cls, cfg: "CrawlConfig") -> "PlaywrightRenderer":
        return cls(headless=cfg.headless)

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Renderer session is not open")
        if self._page.is_closed():
            raise RuntimeError("Renderer page was closed")
        return self._page

    async def open(self) -> None:
        ensure_browsers_path()
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=["--disable-gpu", "--disable-dev-shm-usage", "--no-first-run"],
        )
        self._context = await self._browser.new_context(locale="en-US")
        self._page = await self._context.new_page()

    async def navigate(self, url: str, timeout_ms: int) -> None:
        page = self.page
        try:
            await page.goto(url, wait_until=self.wait_until, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise NavigationError(url, f"Navigation timeout of {timeout_ms} ms exceeded") from exc
        except PlaywrightError as exc:
            raise NavigationError(url, exc.message or str(exc)) from exc

    async def has_lazy_load_signal(self) -> bool:
        return await self.page.query_selector(LAZY_LOAD_SELECTOR) is not None

    async def find_element(self, selector: str) -> Optional[ElementHandle]:
        return await self.page.query_selector(selector)

    async def read_label(self, element: ElementHandle) -> str:
        return await element.inner_text()

    async def is_in_viewport(self, element: ElementHandle) -> bool:
        return bool(await element.evaluate(_IN_VIEWPORT_JS))

    async def scroll_into_view(self, element: ElementHandle) -> None:
        await element.evaluate("(el) => el.scrollIntoView({behavior: 'smooth', block: 'center'})")

    async def click(self, element: ElementHandle) -> None:
        await element.click()

    async def scroll_to_bottom(self) -> None:
        await self.page.evaluate("window.scrollTo(0, document.body.scrollHeight)")

    async def measure_scroll_extent(self) -> float:
        return await self.page.evaluate("document.body.scrollHeight")

    async def extract_links(self) -> List[str]:
        return await self.page.eval_on_selector_all("a[href]", "(els) => els.map((a) => a.href)")

    async def close(self) -> None:
        # Tear down innermost first; each step may fail if the browser already died.
        for name in ("_page", "_context", "_browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as exc:
                logger.debug("Ignoring error while closing %s: %s", name.lstrip("_"), exc)
            setattr(self, name, None)
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
