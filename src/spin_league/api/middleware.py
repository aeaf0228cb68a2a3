import time
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with its status code and latency."""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        # rejected engine requests surface as 4xx
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(level, f"{request.method} {request.url.path} -> {response.status_code} "
                          f"({elapsed * 1000:.1f} ms)")

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response
