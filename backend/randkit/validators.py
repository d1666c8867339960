"""Request validators for one-shot draws and streams."""
from randkit.config import settings
from randkit.errors import ConfigurationError, ErrorCode, RandomError
from randkit.logic.engine import LENGTH_OPS
from randkit.logic.models import DrawOp
from randkit.protocol import CreateStreamRequest, DrawRequest


def validate_length(length: int, name: str = "length") -> None:
    """
    Validate an output length.

    Raises INVALID_REQUEST unless 0 <= length <= max_output_length.
    """
    if length < 0 or length > settings.max_output_length:
        raise RandomError(
            ErrorCode.INVALID_REQUEST,
            f"{name} must be between 0 and {settings.max_output_length}, got {length}.",
        )


def validate_count(count: int) -> None:
    """Raises INVALID_REQUEST unless 1 <= count <= max_draw_count."""
    if count < 1 or count > settings.max_draw_count:
        raise RandomError(
            ErrorCode.INVALID_REQUEST,
            f"count must be between 1 and {settings.max_draw_count}, got {count}.",
        )


def validate_items(items: list) -> None:
    """
    Validate a choice collection.

    Empty collections are left to the generator, which raises EMPTY_COLLECTION.
    """
    if len(items) > settings.max_choice_items:
        raise RandomError(
            ErrorCode.INVALID_REQUEST,
            f"At most {settings.max_choice_items} items allowed, got {len(items)}.",
        )


def validate_create_stream(request: CreateStreamRequest) -> None:
    """Raises NO_SEEDS for an explicit empty seed list."""
    if request.seeds is None:
        return
    if not request.seeds:
        raise ConfigurationError()
    if len(request.seeds) > settings.max_seeds:
        raise RandomError(
            ErrorCode.INVALID_REQUEST,
            f"At most {settings.max_seeds} seeds allowed, got {len(request.seeds)}.",
        )


def validate_draw_request(request: DrawRequest) -> None:
    """Run all validations on a stream draw request."""
    validate_count(request.count)
    if request.length is not None:
        if request.op not in LENGTH_OPS:
            raise RandomError(
                ErrorCode.INVALID_REQUEST,
                f"length is not valid for op {request.op.value}.",
            )
        validate_length(request.length)
    if request.op == DrawOp.HEX and request.length is None:
        raise RandomError(ErrorCode.INVALID_REQUEST, "op hex requires length.")
    if request.op == DrawOp.CHOICE:
        if request.items is None:
            raise RandomError(ErrorCode.INVALID_REQUEST, "op choice requires items.")
        validate_items(request.items)
