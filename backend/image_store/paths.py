"""
Storage Path Derivation

Maps an eligible image URL to a deterministic storage path.

Example:
    https://mmbiz.qpic.cn/sz_mmbiz_png/xxx/640?wx_fmt=png
    -> /mmbiz_qpic_cn/sz_mmbiz_png/xxx/640.png

The path depends only on the URL itself, never on time or request
context, so the same image always lands on the same key and existence
checks can skip repeated uploads.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qs, urlparse

from .config import ImageStoreConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoragePath:
    """Derived storage location of a cached image."""
    path: str           # Always starts with "/"
    extension: str

    @property
    def key(self) -> str:
        """Store-relative key (no leading slash)."""
        return self.path[1:]

    def public_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/{self.key}"


def infer_extension(path: str, query: str, config: ImageStoreConfig) -> str:
    """
    Infer the file extension.

    Priority: explicit format query parameter, then "_png"/"_gif"/"_jpg"
    hints in the path, then the configured default.
    """
    fmt_values = parse_qs(query).get(config.format_param)
    if fmt_values and fmt_values[0]:
        fmt = fmt_values[0]
        return "jpg" if fmt == "jpeg" else fmt

    if "_png" in path:
        return "png"
    if "_gif" in path:
        return "gif"
    if "_jpg" in path or "_jpeg" in path:
        return "jpg"
    return config.default_extension


def derive_storage_path(url: str, config: ImageStoreConfig) -> Optional[StoragePath]:
    """
    Derive the storage path for an image URL.

    Returns None when the URL is malformed or its host is not allow-listed.
    This is the single authority for eligibility.
    """
    if not isinstance(url, str) or not url:
        return None

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        logger.debug(f"[ImageStore] Unparseable image URL {url[:80]}: {e}")
        return None

    if parsed.scheme not in ("http", "https") or not hostname:
        return None
    if hostname.lower() not in config.allowed_hosts:
        return None

    url_path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    if not url_path:
        return None

    domain_prefix = hostname.lower().replace(".", "_")
    extension = infer_extension(url_path, parsed.query, config)

    return StoragePath(path=f"/{domain_prefix}/{url_path}.{extension}", extension=extension)
