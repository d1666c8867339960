"""Redis service for stream persistence, draw locking and idempotency."""
import hashlib
import json
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import redis.asyncio as redis

from randkit.config import settings
from randkit.errors import ErrorCode, RandomError
from randkit.logic.models import GeneratorState


@dataclass
class LockMetrics:
    """Metrics from lock acquisition for telemetry."""

    acquire_ms: float


class RedisService:
    """Redis client for stream state, per-stream locks and idempotency cache."""

    # Key prefixes
    IDEMPOTENCY_PREFIX = "idem:"
    LOCK_PREFIX = "lock:stream:"
    STATE_PREFIX = "state:stream:"

    # TTLs in seconds
    IDEMPOTENCY_TTL = settings.idempotency_ttl_seconds
    LOCK_TTL = settings.lock_ttl_seconds
    STATE_TTL = settings.stream_state_ttl_seconds

    # Lua script for token-safe lock release (compare-and-delete)
    # Only deletes if current value matches token; prevents releasing another's lock
    RELEASE_LOCK_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, redis_url: str | None = None):
        self._url = redis_url or settings.redis_url
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._client is None:
            self._client = redis.from_url(self._url, decode_responses=True)

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        """Get Redis client, raise if not connected."""
        if self._client is None:
            raise RuntimeError("Redis not connected")
        return self._client

    @staticmethod
    def stream_key(client_id: str, stream_id: str) -> str:
        """Streams are namespaced by client so ids never collide across clients."""
        return f"{client_id}:{stream_id}"

    def _payload_hash(self, payload: dict[str, Any]) -> str:
        """Create deterministic hash of payload for conflict detection."""
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()[:16]

    async def check_idempotency(
        self, scope: str, request_id: str, payload: dict[str, Any]
    ) -> dict[str, Any] | None:
        """
        Check idempotency cache.

        Returns cached response if request_id was seen before with same payload.
        Raises IDEMPOTENCY_CONFLICT if same request_id with different payload.
        Returns None if request_id not seen before.
        """
        key = f"{self.IDEMPOTENCY_PREFIX}{scope}:{request_id}"
        cached = await self.client.get(key)

        if cached is None:
            return None

        data = json.loads(cached)
        if data.get("payload_hash") != self._payload_hash(payload):
            raise RandomError(
                ErrorCode.IDEMPOTENCY_CONFLICT,
                "Same clientRequestId used with different payload.",
            )

        return data.get("response")

    async def store_idempotency(
        self,
        scope: str,
        request_id: str,
        payload: dict[str, Any],
        response: dict[str, Any],
    ) -> None:
        """Store response in idempotency cache."""
        key = f"{self.IDEMPOTENCY_PREFIX}{scope}:{request_id}"
        data = {
            "payload_hash": self._payload_hash(payload),
            "response": response,
        }
        await self.client.setex(key, self.IDEMPOTENCY_TTL, json.dumps(data))

    async def acquire_stream_lock(self, stream_key: str) -> str | None:
        """
        Attempt to acquire per-stream lock with unique token.

        Returns token string if lock acquired, None if already locked.
        """
        key = f"{self.LOCK_PREFIX}{stream_key}"
        token = str(uuid.uuid4())
        acquired = await self.client.set(key, token, nx=True, ex=self.LOCK_TTL)
        return token if acquired is True else None

    async def release_stream_lock(self, stream_key: str, token: str) -> bool:
        """
        Release per-stream lock only if token matches (token-safe).

        Returns True if lock was released, False if token didn't match.
        """
        key = f"{self.LOCK_PREFIX}{stream_key}"
        result = await self.client.eval(self.RELEASE_LOCK_SCRIPT, 1, key, token)
        return result == 1

    @asynccontextmanager
    async def stream_lock(self, stream_key: str):
        """
        Context manager for the stream draw lock.

        Draws advance the stream state, so two concurrent draws on one stream
        would both start from the same snapshot. Raises STREAM_BUSY instead
        of waiting. Yields LockMetrics for telemetry.
        """
        t0 = time.monotonic()
        token = await self.acquire_stream_lock(stream_key)
        if token is None:
            raise RandomError(
                ErrorCode.STREAM_BUSY,
                "Another draw is in progress for this stream.",
            )
        metrics = LockMetrics(acquire_ms=(time.monotonic() - t0) * 1000)
        try:
            yield metrics
        finally:
            await self.release_stream_lock(stream_key, token)

    async def get_stream_state(self, stream_key: str) -> GeneratorState | None:
        """Load a stream snapshot; None if the stream does not exist or expired."""
        cached = await self.client.get(f"{self.STATE_PREFIX}{stream_key}")
        if cached is None:
            return None
        return GeneratorState(**json.loads(cached))

    async def save_stream_state(self, stream_key: str, state: GeneratorState) -> None:
        """Save a new stream snapshot with TTL."""
        key = f"{self.STATE_PREFIX}{stream_key}"
        await self.client.setex(key, self.STATE_TTL, json.dumps(state.model_dump()))

    async def update_stream_state(self, stream_key: str, state: GeneratorState) -> bool:
        """
        Overwrite an existing stream snapshot (TTL refreshed).

        Uses SET XX so a stream deleted since it was loaded stays deleted.
        Returns False if the stream no longer exists.
        """
        key = f"{self.STATE_PREFIX}{stream_key}"
        updated = await self.client.set(
            key, json.dumps(state.model_dump()), ex=self.STATE_TTL, xx=True
        )
        return updated is True

    async def delete_stream_state(self, stream_key: str) -> bool:
        """Delete a stream; returns False if it did not exist."""
        return await self.client.delete(f"{self.STATE_PREFIX}{stream_key}") == 1


# Global instance
redis_service = RedisService()
