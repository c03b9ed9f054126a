"""Authentication middleware to extract the caller from a bearer token."""

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from blocktrust_api.auth.identity import decode_token, extract_bearer
from blocktrust_api.errors import Unauthenticated

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {"/health", "/ready", "/metrics", "/docs", "/openapi.json", "/", "/v1/blockchain-status"}


class AuthMiddleware(BaseHTTPMiddleware):
    """Validate the bearer token and expose the actor id on request state."""

    async def dispatch(self, request: Request, call_next):
        """Process request with actor extraction."""
        # Skip auth for health checks, docs, metrics and public ledger status
        if request.url.path in PUBLIC_PATHS or request.url.path.startswith("/metrics"):
            return await call_next(request)

        # CORS preflight carries no credentials
        if request.method == "OPTIONS":
            return await call_next(request)

        try:
            actor_id = decode_token(extract_bearer(request.headers.get("authorization")))
        except Unauthenticated as e:
            return JSONResponse(status_code=e.status_code, content={"error": e.message})

        request.state.actor_id = actor_id

        # Structured logging
        correlation_id = getattr(request.state, "correlation_id", None)
        logger.info(
            "Authenticated request",
            extra={
                "actor_id": actor_id,
                "correlation_id": correlation_id,
                "path": request.url.path,
            },
        )

        return await call_next(request)
