"""
Article Proxy API Routes

Provides endpoints for:
- WeChat articles:  GET /s/{article_id}, GET /html/s/{article_id}
- Any web page:     GET /md?url=..., GET /html/md?url=...
- Health check:     GET /health, GET /healthz
- Index page:       GET /
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote, unquote, urlparse

import httpx
from fastapi import APIRouter, BackgroundTasks, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from .converter import ConversionError
from .service import ArticleService, UpstreamError
from .templates import render_index_page, render_preview

logger = logging.getLogger(__name__)

USAGE_MESSAGE = (
    "Please use a WeChat article path: /s/{article_id} or /html/s/{article_id}, "
    "or convert any page with /md?url=<encoded url>"
)

# ============================================
# Response Models
# ============================================


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str


# ============================================
# Router
# ============================================

router = APIRouter(tags=["Article Proxy"])


def get_article_service(request: Request) -> ArticleService:
    return request.app.state.article_service


def content_disposition(title: str) -> str:
    """
    Attachment header for a markdown download named after the title.

    Header values must be latin-1, so CJK titles go in the RFC 5987
    filename* parameter with an ASCII-only fallback in filename.
    """
    ascii_title = title.encode("ascii", "ignore").decode("ascii")
    ascii_title = ascii_title.replace('"', "").replace("\\", "").strip(" _") or "article"
    encoded = quote(f"{title}.md", safe="")
    return f"attachment; filename=\"{ascii_title}.md\"; filename*=UTF-8''{encoded}"


def _text_error(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, media_type="text/plain; charset=utf-8")


async def _convert_to_response(
    service: ArticleService,
    url: str,
    fallback_title: str,
    background_tasks: BackgroundTasks,
    html_mode: bool = False,
    download: bool = False,
) -> Response:
    """Run the conversion and map failures to HTTP responses."""
    try:
        result = await service.convert(url, fallback_title, background_tasks)
    except UpstreamError as e:
        return _text_error(f"Failed to fetch page, upstream status: {e.status_code}", 502)
    except ConversionError as e:
        return _text_error(f"Markdown conversion failed: {e}", 500)
    except httpx.HTTPError as e:
        logger.error(f"[ArticleProxy] Fetch error for {url[:100]}: {e!r}")
        return _text_error(f"Failed to fetch page: {e}", 502)
    except Exception as e:
        logger.exception(f"[ArticleProxy] Unexpected error for {url[:100]}")
        return _text_error(f"Error while processing request: {e}", 500)

    if html_mode:
        return HTMLResponse(render_preview(result.title, result.markdown))

    headers = {}
    if download:
        headers["Content-Disposition"] = content_disposition(result.title)

    return Response(
        content=result.markdown,
        media_type="text/markdown; charset=utf-8",
        headers=headers,
    )


async def _convert_generic_page(
    request: Request,
    background_tasks: BackgroundTasks,
    url: Optional[str],
    html_mode: bool,
    download: bool,
) -> Response:
    if not url:
        return _text_error("Missing required url parameter", 400)

    target_url = unquote(url)
    try:
        parsed = urlparse(target_url)
        valid = parsed.scheme in ("http", "https") and bool(parsed.hostname)
    except ValueError:
        valid = False
    if not valid:
        return _text_error(f"Invalid URL: {target_url}", 400)

    fallback_id = parsed.hostname + parsed.path.replace("/", "_")
    return await _convert_to_response(
        get_article_service(request),
        target_url,
        fallback_id,
        background_tasks,
        html_mode=html_mode,
        download=download,
    )


# ============================================
# Endpoints
# ============================================

@router.get("/", response_class=HTMLResponse)
async def index():
    return HTMLResponse(render_index_page())


@router.get("/health", response_model=HealthResponse)
@router.get("/healthz", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint."""
    return JSONResponse(content={
        "status": "ok",
        "version": get_article_service(request).config.version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    })


@router.get("/md")
async def convert_page(
    request: Request,
    background_tasks: BackgroundTasks,
    url: Optional[str] = Query(None, description="URL of the page to convert"),
    output_format: Optional[str] = Query(None, alias="format", description="'html' for an HTML preview"),
    download: Optional[str] = Query(None, description="'true' to download as a file"),
):
    """
    Convert any web page to markdown.

    Example:
        GET /md?url=https%3A%2F%2Fexample.com
    """
    return await _convert_generic_page(
        request, background_tasks, url, html_mode=output_format == "html", download=download == "true"
    )


@router.get("/html/md")
async def convert_page_html(
    request: Request,
    background_tasks: BackgroundTasks,
    url: Optional[str] = Query(None, description="URL of the page to convert"),
    download: Optional[str] = Query(None),
):
    """Convert any web page and return an HTML preview."""
    return await _convert_generic_page(
        request, background_tasks, url, html_mode=True, download=download == "true"
    )


@router.get("/html/s/{article_id:path}")
async def convert_wechat_article_html(
    article_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    download: Optional[str] = Query(None),
):
    """Convert a WeChat article and return an HTML preview."""
    return await _convert_wechat_article(
        request, background_tasks, article_id, html_mode=True, download=download == "true"
    )


@router.get("/s/{article_id:path}")
async def convert_wechat_article(
    article_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    download: Optional[str] = Query(None),
):
    """
    Convert a WeChat article to markdown.

    A trailing ".html" (legacy form) returns the HTML preview instead.

    Example:
        GET /s/MhzcF7u_p3UHZ9qR6hptww
    """
    html_mode = False
    if article_id.endswith(".html"):
        html_mode = True
        article_id = article_id[:-len(".html")]
    return await _convert_wechat_article(
        request, background_tasks, article_id, html_mode=html_mode, download=download == "true"
    )


async def _convert_wechat_article(
    request: Request,
    background_tasks: BackgroundTasks,
    article_id: str,
    html_mode: bool,
    download: bool,
) -> Response:
    if not article_id:
        return _text_error("Please provide a WeChat article ID", 400)

    service = get_article_service(request)
    return await _convert_to_response(
        service,
        service.wechat_article_url(article_id),
        article_id,
        background_tasks,
        html_mode=html_mode,
        download=download,
    )


@router.get("/{unknown_path:path}", include_in_schema=False)
async def unknown_route(unknown_path: str):
    return _text_error(USAGE_MESSAGE, 400)
