"""Security Headers Middleware

Adds security headers to HTTP responses.

The catalog serves uploaded files back to browsers under /uploads, so a
file uploaded as an "image" must never be sniffed into HTML or script.
Uploaded files additionally get a Content-Security-Policy that blocks
everything they could load or execute.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

import config

# Uploaded content is data, never a document that runs code
UPLOAD_CSP = "; ".join([
    "default-src 'none'",
    "img-src 'self'",
    "frame-ancestors 'none'",
    "sandbox",
])


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        # X-Content-Type-Options: browsers must respect the declared Content-Type
        response.headers["X-Content-Type-Options"] = "nosniff"

        # X-Frame-Options: prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        response.headers["Referrer-Policy"] = "no-referrer-when-downgrade"

        if request.url.path.startswith(config.UPLOAD_URL_PREFIX + "/"):
            response.headers["Content-Security-Policy"] = UPLOAD_CSP

        return response
