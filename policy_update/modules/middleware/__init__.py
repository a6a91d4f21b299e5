"""
Middleware Module - Black Box Interface

Purpose: Cross-origin handling shared by every route
Interface: CorsMiddleware(request, call_next), registered with app.middleware("http")
Hidden: Header set, pre-flight short-circuit, last-resort 500

Pre-flight (OPTIONS) requests are answered here with an empty body, before
routing and before authentication.
"""

import logging
from typing import Dict, Optional

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

logger = logging.getLogger(__name__)

PERMISSIVE_CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Expose-Headers": "*",
}


class CorsMiddleware:
    """Adds permissive CORS headers to every response and answers pre-flight."""

    def __init__(self, headers: Optional[Dict[str, str]] = None, log_preflight: bool = False):
        """
        Initialize CORS middleware.

        Args:
            headers: Headers to set on every response
            log_preflight: Whether to log answered OPTIONS requests
        """
        self.headers = dict(headers or PERMISSIVE_CORS_HEADERS)
        self.log_preflight = log_preflight

    def apply(self, response: Response) -> Response:
        for name, value in self.headers.items():
            response.headers[name] = value
        return response

    async def __call__(self, request: Request, call_next):
        if request.method.upper() == "OPTIONS":
            if self.log_preflight:
                logger.debug(f"Answering pre-flight for {request.url.path}")
            return self.apply(Response(status_code=200))

        try:
            response = await call_next(request)
        except Exception:
            # Starlette answers these outside this middleware, without the headers
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            response = PlainTextResponse("Internal Server Error", status_code=500)
        return self.apply(response)


__all__ = ["CorsMiddleware", "PERMISSIVE_CORS_HEADERS"]
