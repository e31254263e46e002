import logging
import time

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import PlainTextResponse
from starlette.datastructures import UploadFile

from aicalamba.config import Settings
from aicalamba.errors import InputError
from api.backend import CalendarBackend
from api.dependencies import get_backend, get_settings
from api.metrics import REQUESTS_TOTAL, REQUEST_LATENCY_SECONDS

router = APIRouter()
logger = logging.getLogger(__name__)

NO_IMAGE_MESSAGE = "No image file found in request"


def _record(endpoint: str, status: str, start: float) -> None:
    # Prometheus counters (best-effort)
    try:
        REQUESTS_TOTAL.labels(endpoint=endpoint, status=status).inc()
        REQUEST_LATENCY_SECONDS.labels(endpoint=endpoint).observe(time.time() - start)
    except Exception:
        pass


@router.post("/text", response_class=PlainTextResponse)
async def convert_text(
    # Empty and missing both reach submit_text and become a 400
    text: str = Form(""),
    backend: CalendarBackend = Depends(get_backend),
) -> PlainTextResponse:
    start = time.time()
    logger.debug(f"Handling text input: {text[:200]!r}")

    try:
        ics = await backend.submit_text(text)
    except InputError:
        _record("/text", "rejected", start)
        raise
    except Exception:
        _record("/text", "failed", start)
        raise

    _record("/text", "ok", start)
    return PlainTextResponse(ics)


async def _first_file_part(request: Request) -> UploadFile:
    form = await request.form()
    for field_name, value in form.multi_items():
        if isinstance(value, UploadFile):
            logger.debug(f"Using file part {field_name!r} ({value.filename!r})")
            return value
    logger.warning("Image upload without a file part")
    raise InputError(NO_IMAGE_MESSAGE)


@router.post("/image", response_class=PlainTextResponse)
async def convert_image(
    request: Request,
    backend: CalendarBackend = Depends(get_backend),
    settings: Settings = Depends(get_settings),
) -> PlainTextResponse:
    start = time.time()

    try:
        upload = await _first_file_part(request)
        try:
            content = await upload.read()
        except Exception as e:
            logger.error(f"Failed to read image file: {e}")
            raise InputError("Failed to read image file") from e

        if not content:
            logger.warning("Image upload with an empty file part")
            raise InputError(NO_IMAGE_MESSAGE)
        if len(content) > settings.max_body_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Image exceeds max size of {settings.max_body_bytes} bytes.",
            )

        logger.info(f"Image upload accepted ({len(content)} bytes, {upload.content_type})")
        ics = await backend.submit_image(content)
    except (InputError, HTTPException):
        _record("/image", "rejected", start)
        raise
    except Exception:
        _record("/image", "failed", start)
        raise

    _record("/image", "ok", start)
    return PlainTextResponse(ics)
