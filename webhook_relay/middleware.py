import re
import time
import uuid
import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .exceptions import PayloadTooLarge, ValidationError, create_error_response
from .utils import get_client_ip

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class SecurityMiddleware(BaseHTTPMiddleware):
    """Response hardening for a JSON API that hands out OTPs and session tokens."""

    def __init__(self, app: ASGIApp, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers.setdefault("Cache-Control", "no-store")
        if self.hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tags every request with an id and logs one line per response.

    A well-formed incoming ``X-Request-ID`` is reused so ids line up with the
    caller's logs; otherwise a fresh one is generated. The id is kept on
    ``request.state.request_id`` and echoed back in the response header.
    """

    async def dispatch(self, request: Request, call_next):
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _REQUEST_ID_PATTERN.match(incoming) else uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
            f"in {elapsed_ms:.1f}ms from {get_client_ip(request)}"
        )
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", "-")
            logger.error(f"[{request_id}] Unhandled error on {request.method} {request.url.path}: {e}", exc_info=True)
            message = f"Internal server error: {e}" if self.debug else "Internal server error"
            return JSONResponse(status_code=500, content=create_error_response(message, "INTERNAL_ERROR"))


class RequestSizeLimitMiddleware:
    """Caps request bodies at ``max_size`` bytes.

    A declared Content-Length is checked before the app runs. Bodies without one
    (chunked uploads) are counted while the app reads them; once the count passes
    the limit the read fails, whatever the app answers is discarded, and a 413
    envelope goes out instead.
    """

    def __init__(self, app: ASGIApp, max_size: int = 1024 * 1024):
        self.app = app
        self.max_size = max_size

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            try:
                size = int(content_length)
            except ValueError:
                await self._reject(scope, receive, send, ValidationError("Malformed Content-Length header"))
                return
            if size > self.max_size:
                logger.warning(f"Rejected {size} byte request to {scope['path']}")
                await self._reject(scope, receive, send, PayloadTooLarge())
                return

        received = 0
        exceeded = False
        response_started = False

        async def counting_receive() -> Message:
            nonlocal received, exceeded
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_size:
                    exceeded = True
                    raise PayloadTooLarge()
            return message

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if exceeded and not response_started:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, counting_receive, guarded_send)
        except PayloadTooLarge:
            if not exceeded:
                raise

        if exceeded and not response_started:
            logger.warning(f"Rejected streamed request to {scope['path']} after {received} bytes")
            await self._reject(scope, receive, send, PayloadTooLarge())

    async def _reject(self, scope: Scope, receive: Receive, send: Send, error) -> None:
        response = JSONResponse(
            status_code=error.status_code,
            content=create_error_response(error.message, error.error_code),
        )
        await response(scope, receive, send)
