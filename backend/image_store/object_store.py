"""
Object Store Backends

Storage collaborators for cached images:
- ObjectStore: protocol used by the uploader (head / put)
- S3ObjectStore: S3-compatible bucket (e.g. Cloudflare R2) via boto3
- LocalObjectStore: file-based store with JSON metadata and expiry cleanup

Keys are store-relative paths without a leading slash.
"""

import asyncio
import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


@dataclass
class ObjectMetadata:
    """Metadata written alongside a stored image."""
    content_type: str
    cache_control: str
    expires_at: datetime
    original_url: str

    def custom_metadata(self) -> Dict[str, str]:
        return {
            "expiresAt": self.expires_at.isoformat(),
            "originalUrl": self.original_url,
        }


@runtime_checkable
class ObjectStore(Protocol):
    """Minimal object store interface used by the uploader."""

    name: str

    async def head(self, key: str) -> bool:
        """Return True if an object exists under key."""
        ...

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        """Write an object under key."""
        ...


# ============================================
# S3 / R2
# ============================================

class S3ObjectStore:
    """
    S3-compatible object store.

    boto3 is blocking, so every call is pushed to a worker thread to keep
    the event loop free.
    """

    name = "s3"

    def __init__(self, bucket: str, client: Any = None, **client_kwargs):
        if not bucket:
            raise ValueError("bucket is required")
        self.bucket = bucket
        self.client = client or boto3.client("s3", **client_kwargs)

    @classmethod
    def from_env(cls) -> "S3ObjectStore":
        client_kwargs = {}
        endpoint_url = os.getenv("IMAGE_STORE_ENDPOINT_URL")
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        region = os.getenv("IMAGE_STORE_REGION")
        if region:
            client_kwargs["region_name"] = region
        return cls(bucket=os.getenv("IMAGE_STORE_BUCKET", ""), **client_kwargs)

    async def head(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in NOT_FOUND_CODES:
                return False
            raise

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=metadata.content_type,
            CacheControl=metadata.cache_control,
            Metadata=metadata.custom_metadata(),
        )
        logger.debug(f"[ObjectStore] s3://{self.bucket}/{key} ({len(data)} bytes)")


# ============================================
# Local file store
# ============================================

@dataclass
class StoredObject:
    """Metadata for a locally stored object."""
    key: str
    content_type: str
    cache_control: str
    size_bytes: int
    created_at: str
    expires_at: str
    original_url: str

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return datetime.fromisoformat(self.expires_at) <= now


class LocalObjectStore:
    """
    File-based object store.

    Layout:
    root/
    ├── objects/
    │   └── mmbiz_qpic_cn/sz_mmbiz_png/xxx/640.png
    └── metadata.json
    """

    name = "local"

    def __init__(self, root: str = "./image_store"):
        self.root = Path(root)
        self.objects_dir = self.root / "objects"
        self.metadata_file = self.root / "metadata.json"

        self._metadata: Dict[str, StoredObject] = {}
        self._lock = asyncio.Lock()

        self.objects_dir.mkdir(parents=True, exist_ok=True)
        self._load_metadata()
        logger.info(f"[ObjectStore] Local store at {self.root} ({len(self._metadata)} objects)")

    def _load_metadata(self) -> None:
        if not self.metadata_file.exists():
            self._metadata = {}
            return
        try:
            with open(self.metadata_file, "r") as f:
                data = json.load(f)
            self._metadata = {k: StoredObject(**v) for k, v in data.items()}
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"[ObjectStore] Failed to load metadata: {e}")
            self._metadata = {}

    def _save_metadata(self) -> None:
        data = {k: asdict(v) for k, v in self._metadata.items()}
        with open(self.metadata_file, "w") as f:
            json.dump(data, f, indent=2)

    def _object_path(self, key: str) -> Path:
        parts = key.split("/")
        if not key or key.startswith("/") or any(p in ("", ".", "..") for p in parts):
            raise ValueError(f"Invalid object key: {key!r}")
        return self.objects_dir.joinpath(*parts)

    async def head(self, key: str) -> bool:
        path = self._object_path(key)
        async with self._lock:
            entry = self._metadata.get(key)
            return entry is not None and not entry.is_expired() and path.exists()

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        path = self._object_path(key)
        async with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)

            self._metadata[key] = StoredObject(
                key=key,
                content_type=metadata.content_type,
                cache_control=metadata.cache_control,
                size_bytes=len(data),
                created_at=datetime.now(timezone.utc).isoformat(),
                expires_at=metadata.expires_at.isoformat(),
                original_url=metadata.original_url,
            )
            self._save_metadata()
        logger.debug(f"[ObjectStore] Stored {key} ({len(data)} bytes)")

    async def get(self, key: str) -> Optional[Tuple[bytes, StoredObject]]:
        """
        Read a stored object.

        Returns:
            Tuple of (data, metadata), or None if missing or expired.
        """
        path = self._object_path(key)
        async with self._lock:
            entry = self._metadata.get(key)
            if entry is None or entry.is_expired():
                return None
            if not path.exists():
                logger.warning(f"[ObjectStore] Object file missing: {path}")
                self._metadata.pop(key, None)
                self._save_metadata()
                return None
            with open(path, "rb") as f:
                return f.read(), entry

    async def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete objects whose expiry timestamp has passed.

        Returns:
            Number of objects removed.
        """
        now = now or datetime.now(timezone.utc)
        async with self._lock:
            expired = [key for key, entry in self._metadata.items() if entry.is_expired(now)]
            for key in expired:
                self._metadata.pop(key, None)
                path = self._object_path(key)
                try:
                    if path.exists():
                        path.unlink()
                except OSError as e:
                    logger.error(f"[ObjectStore] Failed to remove {key}: {e}")

            if expired:
                self._save_metadata()
                logger.info(f"[ObjectStore] Cleaned up {len(expired)} expired objects")
            return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        total_size = sum(entry.size_bytes for entry in self._metadata.values())
        return {
            "backend": self.name,
            "total_objects": len(self._metadata),
            "total_size_bytes": total_size,
            "total_size_mb": round(total_size / (1024 * 1024), 2),
        }


def create_object_store(backend: Optional[str] = None) -> Optional[ObjectStore]:
    """
    Create the configured object store.

    IMAGE_STORE_BACKEND: "s3", "local" or "none" (default). Returns None
    when no store is configured, which turns the image subsystem into a
    passthrough.
    """
    backend = (backend or os.getenv("IMAGE_STORE_BACKEND", "none")).strip().lower()

    if backend == "s3":
        if not os.getenv("IMAGE_STORE_BUCKET", "").strip():
            logger.warning("[ObjectStore] IMAGE_STORE_BUCKET not set, image store disabled")
            return None
        return S3ObjectStore.from_env()
    if backend == "local":
        return LocalObjectStore(os.getenv("IMAGE_STORE_DIR", "./image_store"))
    if backend in ("", "none"):
        logger.info("[ObjectStore] No image store configured")
        return None
    raise ValueError(f"Unknown IMAGE_STORE_BACKEND: {backend}")
