"""
Custom middleware for request processing.

Binds a request ID into the structlog context, logs each request
and adds timing headers.
"""

import time
import uuid
from typing import Callable, Awaitable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from qc_inspection.core.logging import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request logging and timing.

    Every log line emitted while the request is handled carries
    ``request_id`` (and ``user_id`` when the caller sent ``X-User-Id``).
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            user_id=request.headers.get("X-User-Id"),
        )

        start_time = time.perf_counter()

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            query_params=str(request.query_params),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed",
                error=str(exc),
                process_time=time.perf_counter() - start_time,
                exc_info=True,
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("user_id")

        process_time = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.6f}"

        logger.info(
            "Request completed",
            status_code=response.status_code,
            process_time=process_time,
        )
        return response
