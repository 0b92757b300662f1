"""
ASGI middleware: request body cap and access logging.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from fastapi import HTTPException
from fastapi.responses import JSONResponse

from codeduel.logger import setup_logger
from codeduel.timer import RequestTimer

logger = setup_logger(__name__)

Scope = Dict[str, Any]
Message = Dict[str, Any]
Receive = Callable[[], Awaitable[Message]]
Send = Callable[[Message], Awaitable[None]]
ASGIApp = Callable[[Scope, Receive, Send], Awaitable[None]]

BODY_TOO_LARGE = "Request body too large"


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than max_body_bytes with HTTP 413.

    A declared Content-Length is checked up front; streamed bodies are
    counted as they are received.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = self._content_length(scope)
        if declared is not None and declared > self.max_body_bytes:
            logger.warning(
                f"⚠️ Rejected {scope['method']} {scope['path']}: body of {declared} bytes"
            )
            response = JSONResponse(status_code=413, content={"error": BODY_TOO_LARGE})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise HTTPException(status_code=413, detail=BODY_TOO_LARGE)
            return message

        await self.app(scope, limited_receive, send)

    @staticmethod
    def _content_length(scope: Scope) -> int | None:
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None


class RequestLoggingMiddleware:
    """Log one line per HTTP request: method, path, status and duration."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        timer = RequestTimer()
        timer.start()
        status = 500

        async def logging_send(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            logger.info(
                f"{scope['method']} {scope['path']} -> {status} ({timer.elapsed_ms()} ms)"
            )
