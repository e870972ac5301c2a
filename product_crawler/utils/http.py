from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from ..errors import NavigationError
from ..version import __version__

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = f"product_crawler/{__version__}"


async def fetch_text(
    session: ClientSession,
    url: str,
    *,
    timeout: float = 30.0,
    user_agent: Optional[str] = DEFAULT_USER_AGENT,
) -> tuple[str, str]:
    """
    Fetch a URL once and return (final_url, body_text).
    Raises NavigationError on timeout, network failure, an error status, or a
    body that cannot be decoded as text.
    """
    headers = {}
    if user_agent:
        headers["User-Agent"] = user_agent

    try:
        async with session.get(url, headers=headers, timeout=ClientTimeout(total=timeout)) as resp:
            resp.raise_for_status()
            try:
                body = await resp.text()
            except (UnicodeDecodeError, LookupError) as exc:
                # Binary resources (PDFs, images, archives) linked from a shop page.
                raise NavigationError(
                    url, f"Undecodable response body ({resp.content_type}): {exc}"
                ) from exc
            return str(resp.url), body
    except asyncio.TimeoutError as exc:
        raise NavigationError(url, f"Navigation timeout of {timeout:g}s exceeded") from exc
    except aiohttp.ClientResponseError as exc:
        raise NavigationError(url, f"HTTP {exc.status} {exc.message}") from exc
    except aiohttp.ClientError as exc:
        logger.debug("fetch_text failed for %s: %r", url, exc)
        raise NavigationError(url, str(exc) or type(exc).__name__) from exc


def create_session() -> ClientSession:
    """
    Create an aiohttp ClientSession for one renderer.
    """
    # Note: caller is responsible for closing the session (await session.close()).
    connector = aiohttp.TCPConnector(limit=1)  # one page at a time per domain
    return aiohttp.ClientSession(connector=connector)
