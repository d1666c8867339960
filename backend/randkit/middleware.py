"""Middleware for client scoping and error handling."""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from randkit.errors import ErrorCode, RandomError


logger = logging.getLogger(__name__)


class ClientIdMiddleware(BaseHTTPMiddleware):
    """Require X-Client-Id on stream endpoints; streams are scoped per client."""

    PROTECTED_PREFIX = "/streams"

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.PROTECTED_PREFIX):
            client_id = request.headers.get("X-Client-Id")
            if not client_id:
                error = RandomError(
                    ErrorCode.INVALID_REQUEST,
                    "Missing required header: X-Client-Id",
                )
                return error.to_response()
            # Store client_id in request state for handlers
            request.state.client_id = client_id

        return await call_next(request)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert RandomError exceptions to protocol-compliant responses."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except RandomError as e:
            return e.to_response()
        except Exception as e:
            logger.exception("Unhandled error on %s", request.url.path)
            error = RandomError(ErrorCode.INTERNAL_ERROR, str(e))
            return error.to_response()
