"""
Request middleware for logging, timing, and request ID tracking.
"""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from booknest.core.logging import get_logger
from booknest.core.metrics import record_request

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds request_id/method/path to structlog contextvars for every log line
    emitted while handling the request, logs completion with duration, and
    records the latency histogram. An inbound X-Request-ID is reused.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error("request_failed", error=str(e), duration_ms=round(duration * 1000, 2))
            record_request(request.method, 500, duration)
            raise

        duration = time.perf_counter() - start_time
        duration_ms = round(duration * 1000, 2)
        logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        record_request(request.method, response.status_code, duration)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
