"""
HTML Utilities

Title extraction, escaping and lazy-image preprocessing for fetched pages.
"""

import html as html_lib
import re

OG_TITLE = re.compile(r"<meta\s+property=[\"']og:title[\"']\s+content=[\"'](.*?)[\"']\s*/?>", re.IGNORECASE)
TWITTER_TITLE = re.compile(r"<meta\s+property=[\"']twitter:title[\"']\s+content=[\"'](.*?)[\"']\s*/?>", re.IGNORECASE)
TITLE_TAG = re.compile(r"<title>(.*?)</title>", re.IGNORECASE)

LAZY_IMG = re.compile(r"<img\s+([^>]*?)data-src=[\"']([^\"']+)[\"']([^>]*)>", re.IGNORECASE)
SRC_ATTR = re.compile(r"src=[\"']([^\"']*)[\"']", re.IGNORECASE)
SRC_ATTR_WITH_SPACE = re.compile(r"src=[\"'][^\"']*[\"']\s*", re.IGNORECASE)

MAX_TITLE_LENGTH = 100


def escape_html(text: str) -> str:
    return html_lib.escape(text, quote=True)


def escape_html_attr(text: str) -> str:
    """Escape a value for a double-quoted attribute."""
    return text.replace("&", "&amp;").replace('"', "&quot;")


def get_article_title(html: str, fallback_id: str) -> str:
    """
    Extract a filename-safe title.

    Priority: og:title, twitter:title, <title>, then "wechat-article-{fallback_id}".
    Whitespace becomes "_", unsafe characters are dropped, length <= 100.
    """
    title = ""
    for pattern in (OG_TITLE, TWITTER_TITLE, TITLE_TAG):
        match = pattern.search(html)
        if match and match.group(1).strip():
            title = match.group(1).strip()
            break
    if not title:
        title = f"wechat-article-{fallback_id}"

    title = re.sub(r"\s+", "_", title)
    title = re.sub(r"[\\/:*?\"<>|]", "", title)
    title = re.sub(r"[^A-Za-z0-9_一-龥\-.]", "", title)
    return title[:MAX_TITLE_LENGTH]


def preprocess_html(html: str) -> str:
    """
    Promote lazy-loaded image URLs.

    WeChat articles keep the real image URL in data-src; copy it into src
    when src is missing, empty or a data: placeholder.
    """

    def _promote(match: re.Match) -> str:
        before, data_src, after = match.group(1), match.group(2), match.group(3)
        src_match = SRC_ATTR.search(before + after)
        src_value = src_match.group(1) if src_match else ""

        if src_value and not src_value.startswith("data:"):
            return match.group(0)

        cleaned_before = SRC_ATTR_WITH_SPACE.sub("", before)
        cleaned_after = SRC_ATTR_WITH_SPACE.sub("", after)
        safe_src = escape_html_attr(data_src)
        return f'<img {cleaned_before}src="{safe_src}" data-src="{safe_src}"{cleaned_after}>'

    return LAZY_IMG.sub(_promote, html)
