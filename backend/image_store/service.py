"""
Image Cache Facade

Ties the rewriter and the background uploader to one configuration and
one object store. The subsystem is enabled only when both a store and a
public base URL are configured; otherwise every call is a passthrough.
"""

import logging
from typing import Optional

import httpx
from fastapi import BackgroundTasks

from .config import ImageStoreConfig
from .object_store import ObjectStore
from .rewriter import rewrite_image_urls
from .uploader import ImageUploader, UploadSummary

logger = logging.getLogger(__name__)


class ImageCache:
    def __init__(
        self,
        config: ImageStoreConfig,
        store: Optional[ObjectStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self.store = store
        self._http_client = http_client
        self._uploader: Optional[ImageUploader] = None

    @property
    def enabled(self) -> bool:
        return self.store is not None and self.config.has_public_url

    @property
    def uploader(self) -> Optional[ImageUploader]:
        if not self.enabled:
            return None
        if self._uploader is None:
            self._uploader = ImageUploader(self.store, self.config, http_client=self._http_client)
        return self._uploader

    def rewrite(self, html: str, markdown: str) -> str:
        """Rewrite eligible image URLs to storage URLs (no I/O)."""
        if not self.enabled:
            logger.debug("[ImageStore] Image store not configured, skipping rewrite")
            return markdown
        return rewrite_image_urls(html, markdown, self.config)

    async def upload(self, html: str, markdown: str) -> UploadSummary:
        """Background entry point: persist eligible images. Never raises."""
        uploader = self.uploader
        if uploader is None:
            logger.debug("[ImageStore] Image store not configured, skipping upload")
            return UploadSummary()
        return await uploader.upload_images(html, markdown)

    def schedule(self, background_tasks: BackgroundTasks, html: str, markdown: str) -> bool:
        """
        Submit the upload to run after the response is sent.

        Returns:
            True if a task was scheduled.
        """
        if not self.enabled:
            return False
        background_tasks.add_task(self.upload, html, markdown)
        return True

    async def aclose(self) -> None:
        if self._uploader is not None:
            await self._uploader.close()
