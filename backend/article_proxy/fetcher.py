"""
Page Fetcher

httpx GET with browser headers, a Referer and retry on transport errors.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

PAGE_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    retries: int = 3,
    delay: float = 1.0,
    referer: Optional[str] = None,
) -> httpx.Response:
    """
    Fetch a page, retrying transport errors.

    HTTP error statuses are returned, not raised; the caller decides.

    Args:
        client: Shared HTTP client
        url: Page URL
        retries: Total attempts
        delay: Initial delay between attempts in seconds (grows x1.5)
        referer: Referer header, defaults to the page's own origin

    Raises:
        httpx.HTTPError: When every attempt failed.
    """
    parsed = urlparse(url)
    headers = dict(PAGE_HEADERS)
    headers["Referer"] = referer or f"{parsed.scheme}://{parsed.hostname}"

    retries = max(1, retries)
    for attempt in range(1, retries + 1):
        try:
            return await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            if attempt == retries:
                raise
            logger.warning(
                f"[Fetcher] Request failed ({attempt}/{retries}), retrying in {delay:.1f}s: {e!r}"
            )
            await asyncio.sleep(delay)
            delay *= 1.5

    raise RuntimeError("unreachable")
