"""Error codes and exceptions shared by the generators and the HTTP layer."""
from enum import Enum

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from randkit.config import settings


class ErrorCode(str, Enum):
    """Protocol error codes."""

    INVALID_REQUEST = "INVALID_REQUEST"
    NO_SEEDS = "NO_SEEDS"
    NO_RANDOM_SOURCE = "NO_RANDOM_SOURCE"
    EMPTY_COLLECTION = "EMPTY_COLLECTION"
    STREAM_NOT_FOUND = "STREAM_NOT_FOUND"
    STREAM_BUSY = "STREAM_BUSY"
    IDEMPOTENCY_CONFLICT = "IDEMPOTENCY_CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.NO_SEEDS: 400,
    ErrorCode.NO_RANDOM_SOURCE: 503,
    ErrorCode.EMPTY_COLLECTION: 400,
    ErrorCode.STREAM_NOT_FOUND: 404,
    ErrorCode.STREAM_BUSY: 409,
    ErrorCode.IDEMPOTENCY_CONFLICT: 409,
    ErrorCode.INTERNAL_ERROR: 500,
}

# Recoverable means the same request may succeed if retried later.
ERROR_RECOVERABLE: dict[ErrorCode, bool] = {
    ErrorCode.INVALID_REQUEST: False,
    ErrorCode.NO_SEEDS: False,
    ErrorCode.NO_RANDOM_SOURCE: False,
    ErrorCode.EMPTY_COLLECTION: False,
    ErrorCode.STREAM_NOT_FOUND: False,
    ErrorCode.STREAM_BUSY: True,
    ErrorCode.IDEMPOTENCY_CONFLICT: False,
    ErrorCode.INTERNAL_ERROR: True,
}


class ErrorBody(BaseModel):
    """Error body shape."""

    code: str
    message: str
    recoverable: bool


class ErrorResponse(BaseModel):
    """Full error response."""

    protocolVersion: str = settings.protocol_version
    error: ErrorBody


class RandomError(Exception):
    """Base error that maps to a protocol error response."""

    def __init__(self, code: ErrorCode, message: str | None = None):
        self.code = code
        self.message = message or f"Error: {code.value}"
        self.status_code = ERROR_HTTP_STATUS[code]
        self.recoverable = ERROR_RECOVERABLE[code]
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """Convert to a JSONResponse."""
        return JSONResponse(
            status_code=self.status_code,
            content=ErrorResponse(
                error=ErrorBody(
                    code=self.code.value,
                    message=self.message,
                    recoverable=self.recoverable,
                )
            ).model_dump(),
        )


class ConfigurationError(RandomError):
    """A deterministic generator was requested with an explicit empty seed list."""

    def __init__(self, message: str = "No seeds were provided"):
        super().__init__(ErrorCode.NO_SEEDS, message)


class ExhaustionError(RandomError):
    """No entropy source (strong source or seed) is available."""

    def __init__(self, message: str = "No random generator available"):
        super().__init__(ErrorCode.NO_RANDOM_SOURCE, message)


class InputError(RandomError):
    """Caller passed an unusable argument, such as an empty collection to choice()."""

    def __init__(
        self,
        message: str = "Cannot choose from an empty collection",
        code: ErrorCode = ErrorCode.EMPTY_COLLECTION,
    ):
        super().__init__(code, message)
