"""Randomness providers.

Every provider implements `fraction()`; the derived operations (choice,
hex strings, ids, secrets) are built from it in RNGBase. Providers with a
native byte source override `hex_string` to draw bytes directly.
"""
import math
import secrets
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Sequence, TypeVar

from randkit.config import settings
from randkit.errors import ConfigurationError, ExhaustionError, InputError
from randkit.logic.alea import Alea
from randkit.logic.mash import TWO_POW_NEG_32
from randkit.logic.models import (
    BASE64_CHARS,
    HEX_CHARS,
    UNMISTAKABLE_CHARS,
    GeneratorState,
)

T = TypeVar("T")


class RNGBase(ABC):
    """Abstract provider interface."""

    kind = "abstract"
    is_secure = False

    # Fast, non-secure generator attached at selection time.
    insecure: "RNGBase | None" = None

    @abstractmethod
    def fraction(self) -> float:
        """Return random float in [0, 1)."""

    def choice(self, sequence: Sequence[T]) -> T:
        """Return a random element of a non-empty sequence (a character for strings)."""
        if len(sequence) == 0:
            raise InputError()
        index = math.floor(self.fraction() * len(sequence))
        return sequence[index]

    def random_string(self, length: int, alphabet: str) -> str:
        """Return `length` characters drawn from alphabet."""
        return "".join(self.choice(alphabet) for _ in range(length))

    def hex_string(self, digits: int) -> str:
        """Return a string of `digits` lowercase hex digits."""
        return self.random_string(digits, HEX_CHARS)

    def id(self, length: int | None = None) -> str:
        """
        Return an identifier such as "Jjwjg6gouWLXhMGKW".

        Drawn from the unmistakable alphabet; the default length carries
        more than 96 bits, enough to be unique in practice.
        """
        if length is None:
            length = settings.default_id_length
        return self.random_string(length, UNMISTAKABLE_CHARS)

    def secret(self, length: int | None = None) -> str:
        """
        Return a random string with 6 bits of entropy per character.

        Defaults to 43 characters (256 bits). Only secure when the provider
        itself is secure; check `is_secure` before using it for credentials.
        """
        if length is None:
            length = settings.default_secret_length
        return self.random_string(length, BASE64_CHARS)

    def create_with_seeds(self, *seeds: Any) -> "AleaRNG":
        """Create a reproducible, non-secure generator from the given seeds."""
        if not seeds:
            raise ConfigurationError()
        return AleaRNG(seeds=seeds)


class CryptoRNG(RNGBase):
    """
    Strong provider built on 32-bit words from the OS CSPRNG.

    Uses cryptographically secure source, no seed.
    """

    kind = "words"
    is_secure = True

    def __init__(self, word_source: Callable[[int], int] | None = secrets.randbits):
        self._word_source = word_source

    def fraction(self) -> float:
        if self._word_source is None:
            raise ExhaustionError()
        try:
            word = self._word_source(32)
        except NotImplementedError as e:
            raise ExhaustionError(f"Strong word source unavailable: {e}") from e
        return word * TWO_POW_NEG_32


class ByteRNG(RNGBase):
    """
    Strong provider built on raw bytes from the OS CSPRNG.

    Its primitive is `hex_string`; `fraction` is constructed from 8 hex
    digits (32 bits).
    """

    kind = "bytes"
    is_secure = True

    def __init__(self, byte_source: Callable[[int], bytes] | None = secrets.token_bytes):
        self._byte_source = byte_source

    def fraction(self) -> float:
        return int(self.hex_string(8), 16) * TWO_POW_NEG_32

    def hex_string(self, digits: int) -> str:
        if self._byte_source is None:
            raise ExhaustionError()
        num_bytes = math.ceil(digits / 2)
        try:
            raw = self._byte_source(num_bytes)
        except (NotImplementedError, OSError) as e:
            raise ExhaustionError(f"Strong byte source unavailable: {e}") from e
        # An odd digit count leaves 4 spare bits; drop the last digit.
        return raw.hex()[:digits]


class AleaRNG(RNGBase):
    """
    Deterministic provider using the Alea algorithm.

    Fully controlled by its seeds and NOT cryptographically secure. With no
    seeds argument it seeds itself from the current time; an explicit empty
    seed list is rejected.
    """

    kind = "alea"
    is_secure = False

    def __init__(self, seeds: Iterable[Any] | None = None, *, alea: Alea | None = None):
        if alea is None:
            if seeds is not None:
                seeds = list(seeds)
                if not seeds:
                    raise ConfigurationError("No seeds were provided for Alea PRNG")
            alea = Alea(seeds)
        self._alea = alea

    @classmethod
    def restore(cls, state: GeneratorState) -> "AleaRNG":
        """Continue the stream captured in a snapshot."""
        return cls(alea=Alea.restore(state))

    @property
    def seeds(self) -> tuple[str, ...]:
        """Seed text this generator was initialized from."""
        return self._alea.args

    @property
    def draws(self) -> int:
        return self._alea.draws

    @property
    def version(self) -> str:
        return self._alea.version

    def fraction(self) -> float:
        return self._alea()

    def uint32(self) -> int:
        """Return an integer in [0, 2^32)."""
        return self._alea.uint32()

    def fract53(self) -> float:
        """Return a 53-bit fraction in [0, 1)."""
        return self._alea.fract53()

    def state(self) -> GeneratorState:
        """Snapshot the generator state."""
        return self._alea.state()
