"""
HTML to Markdown Converter

Thin wrapper around Microsoft's MarkItDown library. Conversion is
synchronous, so it runs in a worker thread.
"""

import asyncio
import io
import logging
from typing import Optional

from markitdown import MarkItDown, StreamInfo

logger = logging.getLogger(__name__)


class ConversionError(Exception):
    """Raised when HTML cannot be converted to markdown."""


class MarkdownConverter:
    """
    Converts HTML documents to markdown.

    Usage:
        converter = MarkdownConverter()
        markdown = await converter.convert_html(html, "article.html")
    """

    def __init__(self, markitdown: Optional[MarkItDown] = None):
        self._markitdown = markitdown

    def _get_markitdown(self) -> MarkItDown:
        """Lazy initialization of MarkItDown instance."""
        if self._markitdown is None:
            self._markitdown = MarkItDown(enable_plugins=False)
        return self._markitdown

    def _convert_sync(self, html: str, filename: str) -> str:
        stream = io.BytesIO(html.encode("utf-8"))
        result = self._get_markitdown().convert_stream(
            stream,
            stream_info=StreamInfo(
                mimetype="text/html",
                extension=".html",
                charset="utf-8",
                filename=filename,
            ),
        )
        return getattr(result, "markdown", None) or getattr(result, "text_content", "") or ""

    async def convert_html(self, html: str, filename: str = "page.html") -> str:
        """
        Convert HTML to markdown.

        Raises:
            ConversionError: If conversion fails or produces nothing.
        """
        logger.info(f"[Converter] Converting {filename} ({len(html)} chars)")
        try:
            markdown = await asyncio.to_thread(self._convert_sync, html, filename)
        except Exception as e:
            logger.error(f"[Converter] Conversion failed for {filename}: {e}")
            raise ConversionError(str(e)) from e

        if not markdown.strip():
            raise ConversionError("Conversion produced no content")
        return markdown
