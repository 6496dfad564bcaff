"""
Background Image Uploader

Fetches eligible images and persists them to the object store after the
response has been sent:
- Deterministic keys shared with the rewriter
- Existence check before download (skip repeated uploads)
- Referer-based hotlink bypass
- Bounded concurrency (fixed-size batches, all-settled join)

Nothing raised in here reaches the request path; failures are logged.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterator, List, Optional, Sequence, TypeVar

import httpx

from .config import ImageStoreConfig
from .extractor import extract_image_urls
from .object_store import ObjectMetadata, ObjectStore
from .paths import derive_storage_path

logger = logging.getLogger(__name__)

T = TypeVar("T")

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "image/webp,image/avif,image/jxl,image/heic,image/heic-sequence,video/*;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}


class UploadOutcome(str, Enum):
    UPLOADED = "uploaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DownloadedImage:
    """Raw image fetched from the origin."""
    url: str
    data: bytes
    content_type: str


@dataclass
class UploadSummary:
    """Result of one background upload run."""
    total: int = 0
    uploaded: int = 0
    skipped: int = 0
    failed: int = 0
    batches: int = 0

    def record(self, outcome: UploadOutcome) -> None:
        if outcome is UploadOutcome.UPLOADED:
            self.uploaded += 1
        elif outcome is UploadOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most size items."""
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


class ImageUploader:
    """
    Downloads eligible images and writes them to an object store.

    Usage:
        uploader = ImageUploader(store, config)
        summary = await uploader.upload_images(html, markdown)
    """

    def __init__(
        self,
        store: ObjectStore,
        config: ImageStoreConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.store = store
        self.config = config
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client if this uploader created it."""
        if self._owns_client:
            await self.http_client.aclose()

    async def download_image(self, url: str) -> Optional[DownloadedImage]:
        """
        Download an image, presenting the trusted Referer.

        Returns:
            DownloadedImage, or None on network error or non-2xx status.
        """
        headers = dict(BROWSER_HEADERS)
        headers["Referer"] = self.config.referer

        try:
            response = await self.http_client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"[ImageUploader] Fetch error: {url[:80]} - {e!r}")
            return None

        if not response.is_success:
            logger.error(f"[ImageUploader] HTTP {response.status_code}: {url[:80]}")
            return None

        content_type = (
            response.headers.get("content-type", "").split(";")[0].strip()
            or self.config.default_content_type
        )
        data = response.content
        logger.info(f"[ImageUploader] Downloaded: {url[:60]}... ({len(data)} bytes, {content_type})")
        return DownloadedImage(url=url, data=data, content_type=content_type)

    async def store_image(self, url: str) -> UploadOutcome:
        """
        Fetch and persist one image unless it is already stored.

        Store errors propagate; upload_images collects them per reference.
        """
        storage_path = derive_storage_path(url, self.config)
        if storage_path is None:
            logger.debug(f"[ImageUploader] Not eligible: {url[:80]}")
            return UploadOutcome.SKIPPED

        key = storage_path.key
        if await self.store.head(key):
            logger.debug(f"[ImageUploader] Already stored: {key}")
            return UploadOutcome.SKIPPED

        image = await self.download_image(url)
        if image is None:
            return UploadOutcome.FAILED

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self.config.retention_seconds)
        await self.store.put(
            key,
            image.data,
            ObjectMetadata(
                content_type=image.content_type,
                cache_control=self.config.cache_control,
                expires_at=expires_at,
                original_url=url,
            ),
        )
        logger.info(f"[ImageUploader] Stored: {key}")
        return UploadOutcome.UPLOADED

    async def upload_images(self, html: str, markdown: str) -> UploadSummary:
        """
        Upload all eligible images referenced by html/markdown.

        Batches run one after another; images in a batch run concurrently.
        Never raises.
        """
        summary = UploadSummary()
        try:
            image_urls = extract_image_urls(html, markdown, self.config.allowed_hosts)
            summary.total = len(image_urls)
            if not image_urls:
                logger.debug("[ImageUploader] No images to upload")
                return summary

            logger.info(f"[ImageUploader] Uploading {len(image_urls)} image(s)")

            for batch in chunked(image_urls, self.config.batch_size):
                summary.batches += 1
                results = await asyncio.gather(
                    *(self.store_image(url) for url in batch),
                    return_exceptions=True,
                )
                for url, result in zip(batch, results):
                    if isinstance(result, BaseException):
                        logger.error(f"[ImageUploader] Failed to store {url[:80]}: {result!r}")
                        summary.record(UploadOutcome.FAILED)
                    else:
                        summary.record(result)

            logger.info(
                f"[ImageUploader] Done: {summary.uploaded} uploaded, "
                f"{summary.skipped} skipped, {summary.failed} failed, {summary.total} total"
            )
        except Exception:
            logger.exception("[ImageUploader] Unexpected error during background upload")
        return summary
