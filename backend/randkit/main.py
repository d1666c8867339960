"""randkit FastAPI application."""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from randkit.config_hash import get_config_hash
from randkit.errors import ErrorCode, RandomError
from randkit.logic.alea import ALEA_VERSION
from randkit.logic.engine import DrawEngine
from randkit.logic.mash import MASH_VERSION
from randkit.logic.models import DrawOp
from randkit.logic.rng import AleaRNG, RNGBase
from randkit.logic.selection import random_source
from randkit.middleware import ClientIdMiddleware, ErrorHandlerMiddleware
from randkit.protocol import (
    ChoiceRequest,
    CreateStreamRequest,
    DrawRequest,
    DrawResponse,
    InfoResponse,
    StreamResponse,
    ValuesResponse,
)
from randkit.redis_service import redis_service
from randkit.telemetry import (
    DrawRejectedEvent,
    DrawServedEvent,
    StreamCreatedEvent,
    telemetry_service,
)
from randkit.validators import (
    validate_count,
    validate_create_stream,
    validate_draw_request,
    validate_items,
    validate_length,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage Redis connection lifecycle."""
    await redis_service.connect()
    yield
    await redis_service.close()


app = FastAPI(
    title="randkit",
    version="0.1.0",
    description="Random fractions, hex strings, ids, secrets and reproducible seeded streams",
    lifespan=lifespan,
)

app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(ClientIdMiddleware)

# Process-wide provider for one-shot draws
provider: RNGBase = random_source

engine = DrawEngine()


def _values_response(values: list) -> dict:
    return ValuesResponse(
        provider=provider.kind,
        isSecure=provider.is_secure,
        values=values,
    ).model_dump()


@app.get("/health")
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/info")
async def info() -> dict:
    """
    GET /info.

    Reports the selected provider and whether it is cryptographically
    secure, so callers can refuse a fallback provider.
    """
    insecure = provider.insecure
    return InfoResponse(
        provider=provider.kind,
        isSecure=provider.is_secure,
        insecureProvider=insecure.kind if insecure is not None else None,
        aleaVersion=ALEA_VERSION,
        mashVersion=MASH_VERSION,
        configHash=get_config_hash(),
    ).model_dump()


@app.get("/random/fraction")
async def random_fraction(count: int = 1) -> dict:
    """GET /random/fraction: `count` fractions in [0, 1)."""
    validate_count(count)
    return _values_response(engine.draw(provider, DrawOp.FRACTION, count=count).values)


@app.get("/random/hex")
async def random_hex(digits: int, count: int = 1) -> dict:
    """GET /random/hex: strings of exactly `digits` lowercase hex characters."""
    validate_length(digits, "digits")
    validate_count(count)
    result = engine.draw(provider, DrawOp.HEX, count=count, length=digits)
    return _values_response(result.values)


@app.get("/random/id")
async def random_id(length: int | None = None, count: int = 1) -> dict:
    """GET /random/id: identifiers over the unmistakable alphabet."""
    if length is not None:
        validate_length(length)
    validate_count(count)
    result = engine.draw(provider, DrawOp.ID, count=count, length=length)
    return _values_response(result.values)


@app.get("/random/secret")
async def random_secret(length: int | None = None, count: int = 1) -> dict:
    """GET /random/secret: secrets over the 64-symbol URL-safe alphabet."""
    if length is not None:
        validate_length(length)
    validate_count(count)
    result = engine.draw(provider, DrawOp.SECRET, count=count, length=length)
    return _values_response(result.values)


@app.post("/random/choice")
async def random_choice(body: ChoiceRequest) -> dict:
    """POST /random/choice: `count` independent picks from `items`."""
    validate_items(body.items)
    validate_count(body.count)
    result = engine.draw(provider, DrawOp.CHOICE, count=body.count, items=body.items)
    return _values_response(result.values)


@app.post("/streams")
async def create_stream(request: Request, body: CreateStreamRequest) -> dict:
    """
    POST /streams.

    Seeds a new Alea stream and persists its state. Streams are
    reproducible and NOT cryptographically secure.
    """
    client_id = request.state.client_id
    validate_create_stream(body)

    generator = AleaRNG(seeds=body.seeds)
    stream_id = provider.id()
    await redis_service.save_stream_state(
        redis_service.stream_key(client_id, stream_id), generator.state()
    )

    config_hash = get_config_hash()
    telemetry_service.emit_stream_created(
        StreamCreatedEvent(
            client_id=client_id,
            stream_id=stream_id,
            seed_count=len(body.seeds) if body.seeds is not None else 0,
            time_seeded=body.seeds is None,
            config_hash=config_hash,
        )
    )

    return StreamResponse(
        streamId=stream_id,
        seeds=list(generator.seeds),
        position=generator.draws,
        configHash=config_hash,
    ).model_dump()


@app.get("/streams/{stream_id}")
async def get_stream(request: Request, stream_id: str) -> dict:
    """GET /streams/{stream_id}: seeds and current position."""
    key = redis_service.stream_key(request.state.client_id, stream_id)
    state = await redis_service.get_stream_state(key)
    if state is None:
        raise RandomError(ErrorCode.STREAM_NOT_FOUND, f"Stream {stream_id} not found.")
    return StreamResponse(
        streamId=stream_id,
        seeds=state.seeds,
        position=state.draws,
        configHash=get_config_hash(),
    ).model_dump()


@app.delete("/streams/{stream_id}")
async def delete_stream(request: Request, stream_id: str) -> dict:
    """DELETE /streams/{stream_id}."""
    key = redis_service.stream_key(request.state.client_id, stream_id)
    # A draw in flight would otherwise write the state back after the delete.
    async with redis_service.stream_lock(key):
        if not await redis_service.delete_stream_state(key):
            raise RandomError(
                ErrorCode.STREAM_NOT_FOUND, f"Stream {stream_id} not found."
            )
    return {"streamId": stream_id, "deleted": True}


@app.post("/streams/{stream_id}/draw")
async def draw(request: Request, stream_id: str, body: DrawRequest) -> dict:
    """
    POST /streams/{stream_id}/draw.

    Implements:
    - Request validation
    - Idempotency (same clientRequestId returns cached response)
    - Per-stream locking (STREAM_BUSY on concurrent draw)
    - Restore state, draw, persist the advanced state
    """
    client_id = request.state.client_id
    key = redis_service.stream_key(client_id, stream_id)

    # 1) Validate request
    validate_draw_request(body)

    # 2) Idempotency fast path
    payload = body.model_dump(mode="json", exclude={"clientRequestId"})
    cached = await redis_service.check_idempotency(key, body.clientRequestId, payload)
    if cached is not None:
        return cached

    lock_start = time.monotonic()
    try:
        async with redis_service.stream_lock(key) as lock_metrics:
            # 3) Re-check inside the lock; a retry may have finished meanwhile
            cached = await redis_service.check_idempotency(
                key, body.clientRequestId, payload
            )
            if cached is not None:
                return cached

            # 4) Restore the generator
            state = await redis_service.get_stream_state(key)
            if state is None:
                raise RandomError(
                    ErrorCode.STREAM_NOT_FOUND, f"Stream {stream_id} not found."
                )
            generator = AleaRNG.restore(state)

            # 5) Draw
            result = engine.draw(
                generator,
                body.op,
                count=body.count,
                length=body.length,
                items=body.items,
            )

            config_hash = get_config_hash()
            response_dict = DrawResponse(
                streamId=stream_id,
                op=body.op,
                values=result.values,
                position=generator.draws,
                configHash=config_hash,
            ).model_dump(mode="json")

            # 6) Persist the advanced state, then cache the response.
            # A cached response must never be ahead of the stored state.
            if not await redis_service.update_stream_state(key, generator.state()):
                raise RandomError(
                    ErrorCode.STREAM_NOT_FOUND, f"Stream {stream_id} not found."
                )
            await redis_service.store_idempotency(
                key, body.clientRequestId, payload, response_dict
            )

            telemetry_service.emit_draw_served(
                DrawServedEvent(
                    client_id=client_id,
                    stream_id=stream_id,
                    client_request_id=body.clientRequestId,
                    op=body.op.value,
                    count=body.count,
                    position=generator.draws,
                    lock_acquire_ms=lock_metrics.acquire_ms,
                    config_hash=config_hash,
                )
            )

            return response_dict

    except RandomError as e:
        if e.code in (ErrorCode.STREAM_BUSY, ErrorCode.STREAM_NOT_FOUND):
            telemetry_service.emit_draw_rejected(
                DrawRejectedEvent(
                    client_id=client_id,
                    stream_id=stream_id,
                    client_request_id=body.clientRequestId,
                    reason=e.code.value,
                    lock_acquire_ms=(time.monotonic() - lock_start) * 1000,
                )
            )
        raise
