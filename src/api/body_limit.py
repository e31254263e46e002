"""
Request body cap for every route.

Content-Length is checked up front. Chunked uploads carry no length, so the
body is also counted as the app reads it and the read is aborted once the
running total passes the cap.
"""

import logging
from typing import Callable

from fastapi import HTTPException
from fastapi.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

TOO_LARGE_MESSAGE = "Request body too large"


class BodyTooLarge(HTTPException):
    def __init__(self, limit: int):
        super().__init__(status_code=413, detail=f"{TOO_LARGE_MESSAGE} (limit {limit} bytes)")


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, get_limit: Callable[[], int]):
        self.app = app
        self.get_limit = get_limit

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = self.get_limit()
        headers = dict(scope.get("headers") or [])
        content_length = headers.get(b"content-length", b"").decode("latin-1")
        if content_length.isdigit() and int(content_length) > limit:
            logger.warning(f"Rejected request body of {content_length} bytes (limit {limit})")
            await PlainTextResponse(TOO_LARGE_MESSAGE, status_code=413)(scope, receive, send)
            return

        received = 0
        response_started = False

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(f"Rejected streamed request body above {limit} bytes")
                    raise BodyTooLarge(limit)
            return message

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, limited_receive, tracking_send)
        except BodyTooLarge:
            # Normally answered by the app's HTTPException handler; this covers reads outside it
            if response_started:
                raise
            await PlainTextResponse(TOO_LARGE_MESSAGE, status_code=413)(scope, receive, send)
