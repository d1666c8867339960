"""Pytest fixtures for randkit tests."""
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from randkit.logic.rng import AleaRNG
from randkit.main import app
from randkit.redis_service import RedisService


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (large draw counts)"
    )


class MockRedis:
    """Mock Redis client for testing."""

    def __init__(self):
        self._store: dict[str, str] = {}
        self._last_set_ex: int | None = None  # Track last SET EX value for TTL tests

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(
        self,
        key: str,
        value: str,
        nx: bool = False,
        ex: int | None = None,
        xx: bool = False,
    ) -> bool | None:
        if nx and key in self._store:
            return None
        if xx and key not in self._store:
            return None
        self._store[key] = value
        self._last_set_ex = ex
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self._store[key] = value
        return True

    async def delete(self, key: str) -> int:
        if key in self._store:
            del self._store[key]
            return 1
        return 0

    async def eval(self, script: str, numkeys: int, *args) -> int:
        """
        Execute Lua script (simplified mock for compare-and-delete).

        Supports the RELEASE_LOCK_SCRIPT pattern:
        - KEYS[1] = args[0] (key)
        - ARGV[1] = args[1] (expected value)
        Returns 1 if deleted, 0 if value didn't match.
        """
        key = args[0]
        expected_value = args[1]
        if self._store.get(key) == expected_value:
            del self._store[key]
            return 1
        return 0

    async def close(self) -> None:
        pass

    def clear(self) -> None:
        self._store.clear()
        self._last_set_ex = None


class RecordingMockRedis(MockRedis):
    """Mock Redis that records operation order for atomicity tests."""

    def __init__(self):
        super().__init__()
        self.operations: list[str] = []
        self.lock_token: str | None = None
        self.lock_ttl: int | None = None

    async def get(self, key: str) -> str | None:
        self.operations.append(self._classify_key(key, "get"))
        return await super().get(key)

    async def set(
        self,
        key: str,
        value: str,
        nx: bool = False,
        ex: int | None = None,
        xx: bool = False,
    ) -> bool | None:
        self.operations.append(self._classify_key(key, "set_nx" if nx else "set"))
        if key.startswith(RedisService.LOCK_PREFIX) and nx:
            self.lock_token = value
            self.lock_ttl = ex
        return await super().set(key, value, nx=nx, ex=ex, xx=xx)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.operations.append(self._classify_key(key, "setex"))
        return await super().setex(key, ttl, value)

    async def delete(self, key: str) -> int:
        self.operations.append(self._classify_key(key, "delete"))
        return await super().delete(key)

    async def eval(self, script: str, numkeys: int, *args) -> int:
        self.operations.append(self._classify_key(args[0], "eval"))
        return await super().eval(script, numkeys, *args)

    def _classify_key(self, key: str, operation: str) -> str:
        """Classify operation by key type for easier assertion."""
        if key.startswith(RedisService.LOCK_PREFIX):
            return f"lock_{operation}"
        elif key.startswith(RedisService.IDEMPOTENCY_PREFIX):
            return f"idempotency_{operation}"
        elif key.startswith(RedisService.STATE_PREFIX):
            return f"state_{operation}"
        return f"unknown_{operation}"

    def clear(self) -> None:
        super().clear()
        self.operations.clear()
        self.lock_token = None
        self.lock_ttl = None


class FlakyStateRedis(MockRedis):
    """Mock Redis whose first overwrite of a stream state fails."""

    def __init__(self):
        super().__init__()
        self.state_failures = 1

    async def set(
        self,
        key: str,
        value: str,
        nx: bool = False,
        ex: int | None = None,
        xx: bool = False,
    ) -> bool | None:
        if key.startswith(RedisService.STATE_PREFIX) and self.state_failures > 0:
            self.state_failures -= 1
            raise ConnectionError("Redis connection lost")
        return await super().set(key, value, nx=nx, ex=ex, xx=xx)


class DeleteAfterLoadRedis(MockRedis):
    """Mock Redis that drops a stream right after it is loaded, once armed."""

    def __init__(self):
        super().__init__()
        self.armed = False

    async def get(self, key: str) -> str | None:
        value = await super().get(key)
        if self.armed and key.startswith(RedisService.STATE_PREFIX):
            self.armed = False
            del self._store[key]
        return value


class RecordingTelemetrySink:
    """Telemetry sink that keeps every event for assertions."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_name: str, data: dict[str, Any]) -> None:
        self.events.append((event_name, data))

    def get_events(self, event_name: str) -> list[dict[str, Any]]:
        return [data for name, data in self.events if name == event_name]


@pytest.fixture
def mock_redis() -> MockRedis:
    """Create a fresh mock Redis for each test."""
    return MockRedis()


@pytest.fixture
def recording_mock_redis() -> RecordingMockRedis:
    """Create a RecordingMockRedis that logs operation order."""
    return RecordingMockRedis()


@pytest.fixture
def redis_service_with_mock(mock_redis: MockRedis) -> Generator[RedisService, None, None]:
    """Create RedisService with mock client."""
    service = RedisService()
    service._client = mock_redis
    yield service
    mock_redis.clear()


@pytest.fixture
def client_with_mock_redis(mock_redis: MockRedis) -> Generator[TestClient, None, None]:
    """Create TestClient with mocked Redis."""
    from randkit.redis_service import redis_service

    original_client = redis_service._client
    redis_service._client = mock_redis

    with TestClient(app) as client:
        yield client

    redis_service._client = original_client
    mock_redis.clear()


@pytest.fixture
def client_with_recording_redis(
    recording_mock_redis: RecordingMockRedis,
) -> Generator[tuple[TestClient, RecordingMockRedis], None, None]:
    """Create TestClient with recording Redis for atomicity tests."""
    from randkit.redis_service import redis_service

    original_client = redis_service._client
    redis_service._client = recording_mock_redis

    with TestClient(app) as client:
        yield client, recording_mock_redis

    redis_service._client = original_client
    recording_mock_redis.clear()


@pytest.fixture
def recording_telemetry() -> Generator[RecordingTelemetrySink, None, None]:
    """Swap the global telemetry sink for a recording one."""
    from randkit.telemetry import telemetry_service

    original_sink = telemetry_service._sink
    sink = RecordingTelemetrySink()
    telemetry_service.set_sink(sink)
    yield sink
    telemetry_service.set_sink(original_sink)


@pytest.fixture
def client_with_recording_telemetry(
    client_with_mock_redis: TestClient,
    mock_redis: MockRedis,
    recording_telemetry: RecordingTelemetrySink,
) -> tuple[TestClient, RecordingTelemetrySink, MockRedis]:
    """TestClient with mocked Redis and a recording telemetry sink."""
    return client_with_mock_redis, recording_telemetry, mock_redis


@pytest.fixture
def seeded_provider(monkeypatch) -> AleaRNG:
    """Replace the process provider with a seeded one for reproducible one-shot draws."""
    import randkit.main

    rng = AleaRNG(seeds=["test"])
    monkeypatch.setattr(randkit.main, "provider", rng)
    return rng


@pytest.fixture
def client_with_flaky_state_redis() -> Generator[tuple[TestClient, FlakyStateRedis], None, None]:
    """TestClient whose Redis fails the first stream state overwrite."""
    from randkit.redis_service import redis_service

    flaky_redis = FlakyStateRedis()
    original_client = redis_service._client
    redis_service._client = flaky_redis

    with TestClient(app) as client:
        yield client, flaky_redis

    redis_service._client = original_client


@pytest.fixture
def client_with_delete_race_redis() -> Generator[tuple[TestClient, DeleteAfterLoadRedis], None, None]:
    """TestClient whose Redis can delete a stream between load and save."""
    from randkit.redis_service import redis_service

    racing_redis = DeleteAfterLoadRedis()
    original_client = redis_service._client
    redis_service._client = racing_redis

    with TestClient(app) as client:
        yield client, racing_redis

    redis_service._client = original_client
