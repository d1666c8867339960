"""Provider selection.

The process-wide provider is a cryptographically strong one whenever the
OS offers a CSPRNG: raw bytes first, 32-bit words second. Without either
we fall back to Alea seeded from ambient, non-secret signals (time,
terminal size, platform string, one `random.random()` draw). That fallback
is NOT cryptographically secure; callers that need secrecy must check
`is_secure`.
"""
import logging
import platform
import random
import secrets
import shutil
from datetime import datetime, timezone
from typing import Any, Callable, Protocol

from randkit.config import settings
from randkit.logic.rng import AleaRNG, ByteRNG, CryptoRNG, RNGBase
from randkit.telemetry import ProviderSelectedEvent, telemetry_service


logger = logging.getLogger(__name__)

PROVIDER_MODES = ("auto", "bytes", "words", "insecure")


class SeedSource(Protocol):
    """Anything that can hand out a list of seed values."""

    def seeds(self) -> list[Any]:
        """Return seed values for an Alea generator."""
        ...


class EnvironmentSeedSource:
    """Collects ambient entropy from the running process."""

    def __init__(
        self,
        clock: Callable[[], datetime] | None = None,
        terminal_size: Callable[[], tuple[int, int]] | None = None,
        agent: Callable[[], str] | None = None,
        ambient_random: Callable[[], float] = random.random,
    ):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._terminal_size = terminal_size or _terminal_size
        self._agent = agent or _platform_agent
        self._ambient_random = ambient_random

    def seeds(self) -> list[Any]:
        width, height = self._terminal_size()
        return [
            self._clock().isoformat(),
            height,
            width,
            self._agent(),
            self._ambient_random(),
        ]


class StaticSeedSource:
    """Fixed seeds, for tests and simulations."""

    def __init__(self, *seeds: Any):
        self._seeds = list(seeds)

    def seeds(self) -> list[Any]:
        return list(self._seeds)


def _terminal_size() -> tuple[int, int]:
    size = shutil.get_terminal_size(fallback=(1, 1))
    return size.columns or 1, size.lines or 1


def _platform_agent() -> str:
    return f"{platform.python_implementation()}/{platform.python_version()} ({platform.platform()})"


def detect_byte_source() -> Callable[[int], bytes] | None:
    """Return the OS byte source if it works on this platform."""
    try:
        secrets.token_bytes(1)
    except NotImplementedError:
        return None
    return secrets.token_bytes


def detect_word_source() -> Callable[[int], int] | None:
    """Return the OS 32-bit word source if it works on this platform."""
    try:
        secrets.randbits(32)
    except NotImplementedError:
        return None
    return secrets.randbits


def create_insecure_generator(seed_source: SeedSource | None = None) -> AleaRNG:
    """Build an Alea generator from ambient entropy. Not cryptographically secure."""
    source = seed_source or EnvironmentSeedSource()
    return AleaRNG(seeds=source.seeds())


def create_default_generator(
    mode: str | None = None,
    seed_source: SeedSource | None = None,
    byte_source_probe: Callable[[], Callable[[int], bytes] | None] = detect_byte_source,
    word_source_probe: Callable[[], Callable[[int], int] | None] = detect_word_source,
) -> RNGBase:
    """
    Select the best available provider.

    mode:
    - "auto": bytes, then words, then the Alea fallback
    - "bytes" / "words": only that strong source, else the Alea fallback
    - "insecure": always the Alea fallback
    """
    mode = mode or settings.provider_mode
    if mode not in PROVIDER_MODES:
        raise ValueError(f"unknown provider mode: {mode!r}")
    generator: RNGBase | None = None
    fallback_reason = None

    if mode in ("auto", "bytes"):
        byte_source = byte_source_probe()
        if byte_source is not None:
            generator = ByteRNG(byte_source)
    if generator is None and mode in ("auto", "words"):
        word_source = word_source_probe()
        if word_source is not None:
            generator = CryptoRNG(word_source)

    if generator is None:
        if mode == "insecure":
            fallback_reason = "requested"
        else:
            fallback_reason = "no strong source"
            logger.warning(
                "No cryptographically strong source available (mode=%s); "
                "falling back to Alea, which is NOT secure",
                mode,
            )
        generator = create_insecure_generator(seed_source)

    telemetry_service.emit_provider_selected(
        ProviderSelectedEvent(
            kind=generator.kind,
            is_secure=generator.is_secure,
            requested_mode=mode,
            fallback_reason=fallback_reason,
        )
    )
    return generator


def create_random(
    generator: RNGBase | None = None,
    seed_source: SeedSource | None = None,
) -> RNGBase:
    """Return the process provider with its `insecure` companion attached."""
    generator = generator or create_default_generator(seed_source=seed_source)
    generator.insecure = create_insecure_generator(seed_source)
    return generator


def create_with_seeds(*seeds: Any) -> AleaRNG:
    """Fresh reproducible generator; raises ConfigurationError without seeds."""
    return random_source.create_with_seeds(*seeds)


# Global instance
random_source = create_random()
