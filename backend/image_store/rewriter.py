"""
Synchronous Image URL Rewriter

Replaces eligible image URLs in the converted markdown with their
storage URLs. Runs on the request path: no network or storage I/O.
The bytes are uploaded later by the background uploader, so a freshly
rewritten URL may 404 briefly until the upload lands.
"""

import logging
import re

from .config import ImageStoreConfig
from .extractor import extract_image_urls
from .paths import derive_storage_path

logger = logging.getLogger(__name__)

# Trailing query chain attached to a reference: "&key=value" or "&amp;key=value", repeated
QUERY_CHAIN = r"(?:&(?:amp;)?[^&)\s\"'<>\]]+)*"


def build_reference_pattern(url: str) -> re.Pattern:
    """Literal pattern for a reference plus any trailing parameter chain."""
    return re.compile(re.escape(url) + QUERY_CHAIN)


def rewrite_image_urls(html: str, markdown: str, config: ImageStoreConfig) -> str:
    """
    Rewrite eligible image URLs in markdown to storage URLs.

    Args:
        html: Source markup (scanned for references)
        markdown: Converted document to rewrite
        config: Image store configuration

    Returns:
        Rewritten markdown, or the input unchanged when no public URL is
        configured or no eligible reference is found.
    """
    if not isinstance(markdown, str):
        return markdown
    if not config.has_public_url:
        logger.debug("[ImageStore] Public URL not configured, skipping rewrite")
        return markdown

    image_urls = extract_image_urls(html, markdown, config.allowed_hosts)
    if not image_urls:
        return markdown

    # Longest first: a reference that prefixes another must not eat into it
    image_urls = sorted(image_urls, key=len, reverse=True)

    result = markdown
    replaced = 0
    for original_url in image_urls:
        storage_path = derive_storage_path(original_url, config)
        if storage_path is None:
            continue

        new_url = storage_path.public_url(config.public_base_url)
        pattern = build_reference_pattern(original_url)
        result, count = pattern.subn(lambda _m: new_url, result)
        replaced += count

    logger.info(
        f"[ImageStore] Rewrote {replaced} occurrence(s) of {len(image_urls)} image reference(s)"
    )
    return result
