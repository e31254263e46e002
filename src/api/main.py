import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from aicalamba.errors import AicalambaError, InputError
from api import state
from api.body_limit import BodySizeLimitMiddleware
from api.dependencies import build_backend, get_settings
from api.routers import convert, ops

# Logging configuration
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format=LOG_FORMAT
)
logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"

app = FastAPI(
    title="aicalamba",
    description="Turns event descriptions, web pages and pictures into iCalendar entries.",
)


@app.on_event("startup")
async def startup() -> None:
    # Fail fast on missing credentials instead of at the first request
    settings = get_settings()
    state.backend = build_backend(settings)
    logger.info(
        f"Backend ready (llm={settings.llm_provider}, screenshot={settings.screenshot_provider})"
    )


def _body_limit() -> int:
    # Honour settings overrides, same as the routes see them
    return app.dependency_overrides.get(get_settings, get_settings)().max_body_bytes


# Uploads can be large photos; anything above the cap is refused while reading
app.add_middleware(BodySizeLimitMiddleware, get_limit=_body_limit)


@app.exception_handler(InputError)
async def input_error_handler(request: Request, exc: InputError) -> PlainTextResponse:
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc}")
    return PlainTextResponse(str(exc), status_code=400)


@app.exception_handler(AicalambaError)
async def pipeline_error_handler(request: Request, exc: AicalambaError) -> PlainTextResponse:
    # The cause may name credentials or infrastructure, so it stays in the log
    logger.error(f"Server ran into an error: {exc.__class__.__name__}: {exc}")
    return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return PlainTextResponse(GENERIC_ERROR_MESSAGE, status_code=500)


app.include_router(ops.router)
app.include_router(convert.router)


def run() -> None:
    settings = get_settings()
    logger.info(f"Will listen on: {settings.addr}")
    uvicorn.run(app, host=settings.bind_host, port=settings.bind_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
