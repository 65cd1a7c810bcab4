"""
MODULE OVERVIEW:
FastAPI middleware to track request timings.
Where it fits: Middleware runs on *every* HTTP request, wrapping our endpoints.

WHAT IS HAPPENING HERE:
We add an `X-Process-Time-Ms` header so clients can see how long a send took on the
server, including any time spent waiting for a recipient's slot to free up.
For SSE streams the number only covers opening the stream, not its lifetime.
"""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Process-Time-Ms"] = f"{process_time_ms:.2f}"

        # Stream opens are already logged by the registry
        if not request.url.path.startswith("/sse"):
            logger.debug(f"{request.method} {request.url.path} {response.status_code} completed in {process_time_ms:.2f}ms")

        return response
