"""
Article Proxy Module

Converts WeChat articles and generic web pages to markdown.
Image URLs in the output are rewritten to the image store and the
images are cached in the background (see image_store).
"""

from .config import ProxyConfig
from .converter import ConversionError, MarkdownConverter
from .service import ArticleResult, ArticleService, UpstreamError
from .routes_fastapi import router

__all__ = [
    "ProxyConfig",
    "ConversionError",
    "MarkdownConverter",
    "ArticleResult",
    "ArticleService",
    "UpstreamError",
    "router",
]
