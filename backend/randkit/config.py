"""Service configuration, overridable through RANDKIT_* environment variables."""
from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings with library defaults."""

    model_config = ConfigDict(env_prefix="RANDKIT_")

    # Server
    debug: bool = False
    redis_url: str = "redis://localhost:6379/0"

    # Protocol
    protocol_version: str = "1.0"

    # Provider selection: "auto" prefers the OS byte source, then 32-bit
    # words, then the seeded Alea fallback. "insecure" forces the fallback.
    provider_mode: Literal["auto", "bytes", "words", "insecure"] = "auto"

    # Output defaults (17 unmistakable chars > 96 bits, 43 base64 chars = 256 bits)
    default_id_length: int = 17
    default_secret_length: int = 43

    # Request limits
    max_output_length: int = 4096
    max_draw_count: int = 1000
    max_choice_items: int = 10000
    max_seeds: int = 64

    # Stream persistence (Redis TTLs)
    stream_state_ttl_seconds: int = 86400  # 24 hours since last draw
    idempotency_ttl_seconds: int = 3600

    # Lock TTL for per-stream draw lock
    lock_ttl_seconds: int = 30  # Auto-expire lock after 30s if process crashes


settings = Settings()
