"""
Thinkify - HTTP middleware: request tracing, security headers, body size limit
"""

import time
from typing import Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from thinkify.core.logging_config import logger, new_request_id, set_request_id, set_user_id
from thinkify.core.responses import error_body

# Probes and API docs are not worth a log line per hit
QUIET_PATHS = frozenset({"/health", "/api/v1/health", "/docs", "/redoc", "/openapi.json", "/favicon.ico"})

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def is_quiet(path: str) -> bool:
    return path in QUIET_PATHS or path.startswith("/api/v1/health/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Give each request an id (taken from X-Request-ID when the caller sends one),
    log its outcome and timing, and echo both back as response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or new_request_id()
        set_request_id(request_id)
        started = time.perf_counter()
        path = request.url.path

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{request.method} {path} raised {type(exc).__name__}",
                exc_info=True,
                extra={"event_type": "http_request_error", "http_method": request.method, "http_path": path},
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            set_user_id("")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        if not is_quiet(path):
            logger.log_request(request.method, path, response.status_code, elapsed_ms)
        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject bodies whose declared Content-Length exceeds ``max_size`` bytes"""

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {declared} byte body on {request.url.path}",
                extra={"event_type": "request_too_large", "max_size": self.max_size},
            )
            limit_mb = self.max_size / (1024 * 1024)
            return JSONResponse(
                status_code=413,
                content=error_body(f"Request body too large. Maximum size is {limit_mb:g}MB"),
            )
        return await call_next(request)
