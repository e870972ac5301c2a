from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from aiohttp import ClientSession
from bs4 import BeautifulSoup, Tag

from ..errors import RevealError
from ..utils.http import DEFAULT_USER_AGENT, create_session, fetch_text
from ..utils.parsing import extract_links
from .base import LAZY_LOAD_SELECTOR

if TYPE_CHECKING:
    from ..config import CrawlConfig


class HttpRenderer:
    """
    Static renderer: plain HTTP fetch plus BeautifulSoup queries, no JavaScript.

    Scrolling never changes the page, so scroll reveals settle immediately;
    clicking is unsupported and ends click reveals in the error state.
    Suited to server-rendered shops where a browser is overkill.
    """

    def __init__(self, user_agent: Optional[str] = DEFAULT_USER_AGENT) -> None:
        self.user_agent = user_agent
        self._session: Optional[ClientSession] = None
        self._url: Optional[str] = None
        self._html: str = ""
        self._soup: Optional[BeautifulSoup] = None

    @classmethod
    def from_config(cls, cfg: "CrawlConfig") -> "HttpRenderer":
        return cls()

    async def open(self) -> None:
        self._session = create_session()

    def load_html(self, url: str, html: str) -> None:
        """Install ``html`` as the current page, as if ``url`` had just been fetched."""
        self._url = url
        self._html = html
        self._soup = BeautifulSoup(html, "html.parser")

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            raise RuntimeError("No page loaded")
        return self._soup

    async def navigate(self, url: str, timeout_ms: int) -> None:
        if self._session is None:
            raise RuntimeError("Renderer session is not open")
        final_url, html = await fetch_text(
            self._session, url, timeout=timeout_ms / 1000, user_agent=self.user_agent
        )
        self.load_html(final_url, html)

    async def has_lazy_load_signal(self) -> bool:
        return self.soup.select_one(LAZY_LOAD_SELECTOR) is not None

    async def find_element(self, selector: str) -> Optional[Tag]:
        return self.soup.select_one(selector)

    async def read_label(self, element: Tag) -> str:
        return element.get_text(" ", strip=True)

    async def is_in_viewport(self, element: Tag) -> bool:
        return True

    async def scroll_into_view(self, element: Tag) -> None:
        return None

    async def click(self, element: Tag) -> None:
        raise RevealError("HttpRenderer cannot click; use a browser renderer for load-more controls")

    async def scroll_to_bottom(self) -> None:
        return None

    async def measure_scroll_extent(self) -> float:
        return float(len(self._html))

    async def extract_links(self) -> List[str]:
        if self._url is None:
            return []
        return extract_links(self._html, base_url=self._url)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None
