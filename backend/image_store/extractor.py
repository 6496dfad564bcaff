"""
Image Reference Extractor

Scans converted markdown and the source HTML for image URLs served by
an allow-listed origin. Pure text scan, no network access.
"""

import re
from functools import lru_cache
from typing import Iterable, List, Pattern, Tuple

# Trailing artifacts left behind by naive extraction, e.g. "...640)" or "...640."
TRAILING_PUNCTUATION = re.compile(r"[,.)\]]+$")


@lru_cache(maxsize=16)
def _build_pattern(hosts: Tuple[str, ...]) -> Pattern[str]:
    """
    Build the URL pattern for a set of hosts.

    Matches the path plus at most the first query parameter. The query part
    stops at "&" so "&amp;from=appmsg" continuations are never picked up as a
    separate reference for the same image.
    """
    host_alternatives = "|".join(re.escape(host) for host in hosts)
    return re.compile(
        r"https?://(?:" + host_alternatives + r")/[^?\s\"'<>)\]]+(?:\?[^&\s\"'<>)\]]+)?",
        re.IGNORECASE,
    )


def extract_image_urls(html: str, markdown: str, allowed_hosts: Iterable[str]) -> List[str]:
    """
    Extract eligible image URLs from HTML and markdown.

    Args:
        html: Source markup the markdown was converted from
        markdown: Converted document
        allowed_hosts: Trusted image hostnames

    Returns:
        De-duplicated URLs in first-seen order (HTML first, then markdown).
    """
    hosts = tuple(allowed_hosts)
    if not hosts:
        return []

    pattern = _build_pattern(hosts)
    seen = set()
    urls: List[str] = []

    for source in (html, markdown):
        if not isinstance(source, str) or not source:
            continue
        for match in pattern.findall(source):
            url = TRAILING_PUNCTUATION.sub("", match)
            if url and url not in seen:
                seen.add(url)
                urls.append(url)

    return urls
