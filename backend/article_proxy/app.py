"""
Application Entry Point

Run with:
    cd backend
    uvicorn --factory article_proxy.app:app_factory --port 8000
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from image_store import ImageCache, ImageStoreConfig, ObjectStore, create_object_store
from image_store import public_router as image_public_router
from image_store import router as image_router

from .config import ProxyConfig
from .converter import MarkdownConverter
from .routes_fastapi import router as article_router
from .service import ArticleService

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(
    proxy_config: Optional[ProxyConfig] = None,
    image_config: Optional[ImageStoreConfig] = None,
    store: Optional[ObjectStore] = None,
    converter: Optional[MarkdownConverter] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Arguments left as None are built from environment variables. The
    store is only built from the environment when image_config is too.
    """
    proxy_config = proxy_config or ProxyConfig.from_env()
    if image_config is None:
        image_config = ImageStoreConfig.from_env()
        if store is None:
            store = create_object_store()

    owns_client = http_client is None
    http_client = http_client or httpx.AsyncClient(
        timeout=proxy_config.fetch_timeout,
        follow_redirects=True,
    )

    image_cache = ImageCache(image_config, store, http_client=http_client)
    article_service = ArticleService(
        proxy_config,
        http_client,
        converter or MarkdownConverter(),
        image_cache,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"[ArticleProxy] Starting v{proxy_config.version}, image store "
            f"{'enabled (' + store.name + ')' if image_cache.enabled else 'disabled'}"
        )
        yield
        await image_cache.aclose()
        if owns_client:
            await http_client.aclose()

    app = FastAPI(title="WeChat Article to Markdown", version=proxy_config.version, lifespan=lifespan)
    app.state.image_cache = image_cache
    app.state.article_service = article_service

    app.include_router(image_router)
    app.include_router(image_public_router)
    # Catch-all route lives here, so it goes last
    app.include_router(article_router)

    return app


def app_factory() -> FastAPI:
    """Entry point for `uvicorn --factory`; configures logging before building."""
    configure_logging()
    return create_app()
