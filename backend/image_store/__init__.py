"""
Image Store Module

Rewrites allow-listed image URLs in converted markdown to a public
object store and caches the images there in the background.

Features:
- Deterministic storage keys (no duplicate uploads)
- Synchronous rewrite on the request path, upload after the response
- Bounded-concurrency uploads with Referer hotlink bypass
- Retention timestamp stamped into object metadata (8 hours)
"""

from .config import ImageStoreConfig
from .extractor import extract_image_urls
from .paths import StoragePath, derive_storage_path
from .rewriter import rewrite_image_urls
from .object_store import ObjectStore, ObjectMetadata, S3ObjectStore, LocalObjectStore, create_object_store
from .uploader import ImageUploader, UploadOutcome, UploadSummary
from .service import ImageCache
from .routes_fastapi import router, public_router

__all__ = [
    "ImageStoreConfig",
    "extract_image_urls",
    "StoragePath",
    "derive_storage_path",
    "rewrite_image_urls",
    "ObjectStore",
    "ObjectMetadata",
    "S3ObjectStore",
    "LocalObjectStore",
    "create_object_store",
    "ImageUploader",
    "UploadOutcome",
    "UploadSummary",
    "ImageCache",
    "router",
    "public_router",
]
