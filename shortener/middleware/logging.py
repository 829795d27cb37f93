"""
Request Logging Middleware

One log line per request: method, path, status, latency and client
address. Routes that work on a short code leave it on request.state, so
redirects are logged with the code and the destination they resolved to.
"""

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger(__name__)

PROCESS_TIME_HEADER = "X-Process-Time"


def describe_short_code(request: Request) -> Optional[str]:
    """Summarize the short code a route handled, if any."""
    short_code = getattr(request.state, "short_code", None)
    if short_code is None:
        return None
    redirect_to = getattr(request.state, "redirect_to", None)
    if redirect_to is None:
        return f"code={short_code}"
    return f"code={short_code} -> {redirect_to}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and reports its latency in X-Process-Time."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        client = request.client.host if request.client else "-"
        line = f"{client} {request.method} {request.url.path} {response.status_code} {elapsed * 1000:.1f}ms"
        detail = describe_short_code(request)
        if detail:
            line = f"{line} {detail}"
        logger.info(line)

        response.headers[PROCESS_TIME_HEADER] = f"{elapsed:.6f}"
        return response


def add_logging_middleware(app: FastAPI) -> None:
    app.add_middleware(RequestLoggingMiddleware)
