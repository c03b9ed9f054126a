"""Correlation ID and request timing middleware."""

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from blocktrust_api.utils.metrics import request_duration

logger = logging.getLogger(__name__)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation ID and record its duration."""

    async def dispatch(self, request: Request, call_next):
        """Process request with correlation ID."""
        correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed = time.perf_counter() - started

        request_duration.labels(method=request.method, status=str(response.status_code)).observe(elapsed)
        logger.debug(
            f"{request.method} {request.url.path} -> {response.status_code} in {elapsed:.3f}s",
            extra={"correlation_id": correlation_id},
        )

        response.headers["x-correlation-id"] = correlation_id
        return response
