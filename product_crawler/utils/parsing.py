from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup

from ..errors import ClassificationError

logger = logging.getLogger(__name__)

#: Path regexes identifying product detail pages. A segment equal to one of
#: the listed words must be followed by another path component.
DEFAULT_PRODUCT_PATTERNS: Tuple[str, ...] = (
    r"/products/",
    r"/product/",
    r"/p/",
    r"/item/",
    r"/p-.+",
)

_DEFAULT_PORTS = {"http": 80, "https": 443}

Origin = Tuple[str, str, int]


def _split_absolute(url: str) -> SplitResult:
    """Split ``url`` and make sure it is absolute, raising ClassificationError otherwise."""
    try:
        parts = urlsplit(url.strip())
        parts.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise ClassificationError(f"unparsable URL {url!r}: {exc}") from exc
    if not parts.scheme or not parts.hostname:
        raise ClassificationError(f"not an absolute URL: {url!r}")
    return parts


def _netloc(parts: SplitResult) -> str:
    scheme = parts.scheme.lower()
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if parts.port is not None and parts.port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{parts.port}"
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return netloc


def normalize_url(url: str) -> str:
    """
    Canonical form of an absolute URL: query and fragment stripped, scheme and
    host lower-cased, default port dropped, empty path replaced by ``/``.
    Anything that cannot be parsed as an absolute URL is returned unchanged.
    """
    try:
        parts = _split_absolute(url)
    except ClassificationError as exc:
        logger.debug("Passing URL through unnormalized: %s", exc)
        return url
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), _netloc(parts), path, "", ""))


def url_origin(url: str) -> Optional[Origin]:
    """(scheme, host, port) of ``url``, or None when it is not an absolute URL."""
    try:
        parts = _split_absolute(url)
    except ClassificationError:
        return None
    scheme = parts.scheme.lower()
    port = parts.port if parts.port is not None else _DEFAULT_PORTS.get(scheme, 0)
    return scheme, (parts.hostname or "").lower(), port


def compile_patterns(patterns: Iterable[str]) -> List[Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


class URLClassifier:
    """
    Normalizes URLs and splits them into product pages and traversal links.

    Classification looks at the normalized path only, so products whose
    identity lives in the query string are not recognised.
    """

    def __init__(self, product_patterns: Sequence[str] = DEFAULT_PRODUCT_PATTERNS) -> None:
        self.product_patterns = tuple(product_patterns)
        self._compiled = compile_patterns(self.product_patterns)

    def normalize(self, url: str) -> str:
        return normalize_url(url)

    def origin(self, url: str) -> Optional[Origin]:
        return url_origin(url)

    def is_product(self, url: str) -> bool:
        path = urlsplit(self.normalize(url)).path
        return any(p.search(path) for p in self._compiled)

    def same_origin(self, url: str, root_origin: Optional[Origin]) -> bool:
        if root_origin is None:
            return False
        return self.origin(url) == root_origin


_default_classifier = URLClassifier()


def is_product_url(url: str) -> bool:
    """Product check against the default path patterns."""
    return _default_classifier.is_product(url)


def extract_links(html: str, base_url: str) -> List[str]:
    """
    Extract absolute link targets from an HTML string, in document order.
    Duplicates are kept; the crawler deduplicates after normalization.
    """
    soup = BeautifulSoup(html, "html.parser")
    out: List[str] = []
    for a in soup.select("a[href]"):
        href = a.get("href")
        if not href:
            continue
        out.append(urljoin(base_url, href.strip()))
    return out
