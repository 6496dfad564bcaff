"""
Article Conversion Service

Fetch a page, convert it to markdown, rewrite image URLs and schedule
the background image upload.
"""

import logging
from dataclasses import dataclass

import httpx
from fastapi import BackgroundTasks

from image_store import ImageCache

from .config import ProxyConfig
from .converter import MarkdownConverter
from .fetcher import fetch_with_retry
from .html_utils import get_article_title, preprocess_html

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The source page answered with a non-success status."""

    def __init__(self, status_code: int):
        super().__init__(f"Upstream returned status {status_code}")
        self.status_code = status_code


@dataclass
class ArticleResult:
    title: str
    markdown: str
    upload_scheduled: bool = False


class ArticleService:
    def __init__(
        self,
        config: ProxyConfig,
        http_client: httpx.AsyncClient,
        converter: MarkdownConverter,
        image_cache: ImageCache,
    ):
        self.config = config
        self.http_client = http_client
        self.converter = converter
        self.image_cache = image_cache

    def wechat_article_url(self, article_id: str) -> str:
        return f"{self.config.wechat_url_prefix}s/{article_id}"

    async def convert(
        self,
        url: str,
        fallback_title: str,
        background_tasks: BackgroundTasks,
    ) -> ArticleResult:
        """
        Convert a web page to markdown.

        The returned markdown already points at storage URLs; the image
        bytes are uploaded after the response by a background task.

        Raises:
            UpstreamError: Source page returned a non-2xx status.
            ConversionError: Markdown conversion failed.
            httpx.HTTPError: Source page could not be fetched at all.
        """
        logger.info(f"[ArticleProxy] Fetching: {url[:100]}")
        response = await fetch_with_retry(
            self.http_client,
            url,
            retries=self.config.fetch_retries,
            delay=self.config.fetch_retry_delay,
        )
        if not response.is_success:
            logger.error(f"[ArticleProxy] Upstream status {response.status_code}: {url[:100]}")
            raise UpstreamError(response.status_code)

        html = preprocess_html(response.text)
        title = get_article_title(html, fallback_title)

        markdown = await self.converter.convert_html(html, f"{title}.html")

        rewritten = self.image_cache.rewrite(html, markdown)
        # Upload from the unrewritten markdown so every original reference is still visible
        scheduled = self.image_cache.schedule(background_tasks, html, markdown)

        return ArticleResult(title=title, markdown=rewritten, upload_scheduled=scheduled)
