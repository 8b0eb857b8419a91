"""Pure ASGI middleware for request IDs and request logging.

Raw ASGI rather than BaseHTTPMiddleware, so responses pass through unbuffered.
"""

import time

import structlog
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from quake.common.logging import bind_request_context

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_HEADER_RAW = REQUEST_ID_HEADER.lower().encode("latin-1")


class RequestIdMiddleware:
    """Binds a request ID for the lifetime of each HTTP request and echoes it back.

    Reuses the caller's ``X-Request-ID`` when present, otherwise generates a UUID4.
    The ID, method and path are bound into structlog's context for the request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        incoming: str | None = None
        for header_name, header_value in scope.get("headers", []):
            if header_name == _REQUEST_ID_HEADER_RAW:
                incoming = header_value.decode("latin-1")
                break

        request_id = bind_request_context(incoming, method=scope["method"], path=scope["path"])

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).append(REQUEST_ID_HEADER, request_id)
            await send(message)

        await self.app(scope, receive, send_with_request_id)


class RequestLoggingMiddleware:
    """Logs one ``http_request`` event per request with status and latency."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 0

        async def send_with_status(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            latency_ms = (time.perf_counter() - start) * 1000
            log = logger.warning if status_code >= 500 or status_code == 0 else logger.info
            log(
                "http_request",
                method=scope["method"],
                path=scope["path"],
                query=scope.get("query_string", b"").decode("latin-1"),
                status_code=status_code,
                latency_ms=round(latency_ms, 1),
            )
