from __future__ import annotations


class CrawlerError(Exception):
    """Base class for every error raised by the crawler core."""


class NavigationError(CrawlerError):
    """Timeout or network failure while reaching a URL. Recorded, never fatal."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason


class RevealError(CrawlerError):
    """Renderer failure during the scroll / click reveal phase."""


class ClassificationError(CrawlerError):
    """A URL could not be parsed as an absolute URL."""


class DomainFatalError(CrawlerError):
    """The renderer session failed mid-crawl; only the owning domain is lost."""

    def __init__(self, domain: str, reason: str) -> None:
        super().__init__(reason)
        self.domain = domain
        self.reason = reason


def describe_error(exc: BaseException) -> str:
    """Human-readable reason for an exception, falling back to its class name."""
    message = str(exc).strip()
    return message or type(exc).__name__
