"""
Image Store Configuration
图片存储配置

Static configuration for the image rewriting/caching subsystem.
Loaded once at process start and passed explicitly to the extractor,
path deriver, rewriter and uploader.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

# Placeholder shipped in sample env files; treated as "not configured"
PLACEHOLDER_PUBLIC_URL = "https://your-r2-domain.example.com"

DEFAULT_ALLOWED_HOSTS = ("mmbiz.qpic.cn", "mmbiz.qlogo.cn")
DEFAULT_RETENTION_SECONDS = 8 * 60 * 60  # 8 hours


@dataclass(frozen=True)
class ImageStoreConfig:
    """Configuration for image URL rewriting and background caching."""
    # Public origin of the object store; None disables the subsystem
    public_base_url: Optional[str] = None

    # Eligible image origins
    allowed_hosts: Tuple[str, ...] = DEFAULT_ALLOWED_HOSTS

    # Storage settings
    retention_seconds: int = DEFAULT_RETENTION_SECONDS
    cache_control: str = "public, max-age=28800"

    # Upload settings
    batch_size: int = 5
    referer: str = "https://mp.weixin.qq.com/"

    # Extension inference
    format_param: str = "wx_fmt"
    default_extension: str = "jpg"
    default_content_type: str = "image/jpeg"

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.retention_seconds <= 0:
            raise ValueError(f"retention_seconds must be > 0, got {self.retention_seconds}")
        # Normalize hosts so membership checks are case-insensitive
        object.__setattr__(
            self,
            "allowed_hosts",
            tuple(host.strip().lower() for host in self.allowed_hosts if host.strip()),
        )

    @property
    def has_public_url(self) -> bool:
        return bool(self.public_base_url) and self.public_base_url != PLACEHOLDER_PUBLIC_URL

    @classmethod
    def from_env(cls) -> "ImageStoreConfig":
        """Build configuration from environment variables."""
        public_url = os.getenv("IMAGE_PUBLIC_BASE_URL") or os.getenv("R2_PUBLIC_URL") or None
        if public_url == PLACEHOLDER_PUBLIC_URL:
            public_url = None

        hosts_env = os.getenv("IMAGE_ALLOWED_HOSTS")
        allowed_hosts = (
            tuple(h for h in hosts_env.split(",") if h.strip())
            if hosts_env
            else DEFAULT_ALLOWED_HOSTS
        )

        retention_hours = float(os.getenv("IMAGE_RETENTION_HOURS", "8"))

        return cls(
            public_base_url=public_url,
            allowed_hosts=allowed_hosts,
            retention_seconds=int(retention_hours * 3600),
            cache_control=f"public, max-age={int(retention_hours * 3600)}",
            batch_size=int(os.getenv("IMAGE_UPLOAD_BATCH_SIZE", "5")),
            referer=os.getenv("IMAGE_FETCH_REFERER", "https://mp.weixin.qq.com/"),
        )
