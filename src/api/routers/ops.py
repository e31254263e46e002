import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from aicalamba.config import Settings
from api.dependencies import get_image_cache, get_settings
from storage.image_cache import LastImageCache

router = APIRouter()
logger = logging.getLogger(__name__)

INDEX_HTML = Path(__file__).resolve().parent.parent / "static" / "index.html"


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    return HTMLResponse(INDEX_HTML.read_text(encoding="utf-8"))


@router.get("/image/last")
async def last_image(cache: LastImageCache = Depends(get_image_cache)) -> Response:
    """Last captured screenshot, for debugging."""
    image = await cache.get()
    if image is None:
        return PlainTextResponse("No image available", status_code=404)
    return Response(content=image, media_type="image/jpeg")


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> dict:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "llm_provider": settings.llm_provider,
        "screenshot_provider": settings.screenshot_provider,
    }


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus scrape endpoint.
    """
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
