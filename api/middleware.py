"""
HTTP middleware: API key authentication, request body limit, security
headers and request logging.

Every path under ``/api`` requires an ``X-API-Key`` header matching the
configured key. With no key configured the API is closed entirely.
"""

import logging
import secrets
import time
from typing import Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": "Unauthorized", "message": message})


class ApiKeyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, api_key: Optional[str], protected_prefix: str = "/api"):
        super().__init__(app)
        self.api_key = api_key
        self.protected_prefix = protected_prefix

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.protected_prefix):
            return await call_next(request)

        provided = request.headers.get(API_KEY_HEADER)
        if not provided:
            return _unauthorized("Missing API key. Please provide X-API-Key header.")

        if not self.api_key or not secrets.compare_digest(provided.encode(), self.api_key.encode()):
            return _unauthorized("Invalid API key")

        return await call_next(request)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s -> %s (%.0fms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response


# Same defaults helmet applies to an Express app, minus the CSP, which
# would block the interactive docs.
SECURITY_HEADERS: Dict[str, str] = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, headers: Optional[Dict[str, str]] = None):
        super().__init__(app)
        self.headers = dict(SECURITY_HEADERS if headers is None else headers)

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies larger than ``max_bytes`` with 413."""

    def __init__(self, app, max_bytes: int):
        super().__init__(app)
        self.max_bytes = max_bytes

    def _too_large(self) -> JSONResponse:
        return JSONResponse(
            status_code=413,
            content={"error": "Payload Too Large", "message": f"Request body exceeds {self.max_bytes} bytes"},
        )

    async def dispatch(self, request: Request, call_next):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return await call_next(request)

        declared = request.headers.get("content-length")
        if declared is not None and declared.isdigit():
            if int(declared) > self.max_bytes:
                return self._too_large()
        elif len(await request.body()) > self.max_bytes:
            # chunked upload; the cached body is replayed to the route
            return self._too_large()

        return await call_next(request)
