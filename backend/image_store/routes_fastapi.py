"""
Image Store API Routes

Provides endpoints for:
- Serving cached images (local backend)
- Store statistics
- Expired object cleanup
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from .object_store import LocalObjectStore
from .service import ImageCache

logger = logging.getLogger(__name__)

# ============================================
# Routers
# ============================================

router = APIRouter(prefix="/api/images", tags=["Image Store"])

# Public object URLs: {IMAGE_PUBLIC_BASE_URL}/{key} resolves here for the local backend
public_router = APIRouter(prefix="/images", tags=["Image Store"])


def get_image_cache(request: Request) -> ImageCache:
    return request.app.state.image_cache


def _require_local_store(image_cache: ImageCache) -> LocalObjectStore:
    store = image_cache.store
    if not isinstance(store, LocalObjectStore):
        raise HTTPException(status_code=404, detail="Local image store not configured")
    return store


# ============================================
# Endpoints
# ============================================

@public_router.get("/{key:path}")
async def serve_image(key: str, request: Request):
    """
    Serve a cached image from the local store.

    Example:
        GET /images/mmbiz_qpic_cn/sz_mmbiz_png/xxx/640.png
    """
    store = _require_local_store(get_image_cache(request))

    try:
        cached = await store.get(key)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid image key")

    if cached is None:
        raise HTTPException(status_code=404, detail="Image not found")

    data, entry = cached
    return Response(
        content=data,
        media_type=entry.content_type,
        headers={
            "Cache-Control": entry.cache_control,
            "Access-Control-Allow-Origin": "*",
        },
    )


@router.get("/stats")
async def get_store_stats(request: Request):
    """Get local store statistics."""
    store = _require_local_store(get_image_cache(request))
    return JSONResponse(content={"success": True, "stats": store.get_stats()})


@router.post("/cleanup")
async def cleanup_store(request: Request):
    """
    Delete expired objects from the local store.

    S3/R2 buckets enforce expiry through their own lifecycle rules.
    """
    store = _require_local_store(get_image_cache(request))
    removed = await store.cleanup_expired()
    return JSONResponse(content={
        "success": True,
        "removed_objects": removed,
        "current_stats": store.get_stats(),
    })


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    image_cache = get_image_cache(request)
    content: Dict[str, Any] = {
        "status": "healthy",
        "service": "image-store",
        "enabled": image_cache.enabled,
        "backend": image_cache.store.name if image_cache.store is not None else None,
    }
    return JSONResponse(content=content)
