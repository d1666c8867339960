"""Alea seeded pseudo-random generator.

Alea is fast and fully reproducible from its seeds, but it is NOT
cryptographically secure. Never use it for keys, tokens or anything an
attacker must not predict.
"""
import math
import threading
import time
from decimal import Decimal
from typing import Any, Iterable

from randkit.logic.mash import TWO_POW_32, TWO_POW_NEG_32, Mash
from randkit.logic.models import GeneratorState

ALEA_VERSION = "Alea 0.9"

ALEA_MULTIPLIER = 2091639
TWO_POW_21 = 0x200000
TWO_POW_NEG_53 = 1.1102230246251565e-16  # 2^-53


def seed_text(value: Any) -> str:
    """
    Render a seed value as the text that gets mixed.

    Follows JavaScript's String() so that ports agree on the same seeds:
    - str: unchanged
    - bool: "true" / "false"
    - None: "null"
    - float: shortest round-trip digits, positional between 1e-7 and 1e21,
      otherwise exponent form ("1e-7", "1.5e+21"); "NaN", "Infinity"
    - list / tuple: elements joined by ","; None elements render empty
    - dict: "[object Object]"

    Ints render as their decimal digits. JavaScript numbers lose precision
    past 2**53, so larger ints only agree with ports that use big integers.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float):
        return _float_text(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else seed_text(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def _float_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    mantissa, exponent = text.split("e")
    power = int(exponent)
    if -7 < power < 21:
        return format(Decimal(text), "f")
    return f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"


def time_seed() -> str:
    """Current wall-clock time in milliseconds, as seed text."""
    return str(int(time.time() * 1000))


class Alea:
    """
    Alea generator state machine.

    Initialized once from a seed sequence; every draw advances the three
    state words and the carry. Draws on one instance are serialized by a
    per-instance lock.
    """

    version = ALEA_VERSION

    def __init__(self, seeds: Iterable[Any] | None = None):
        args = [seed_text(seed) for seed in seeds] if seeds is not None else []
        if not args:
            args = [time_seed()]

        mash = Mash()
        s0 = mash(" ")
        s1 = mash(" ")
        s2 = mash(" ")
        for arg in args:
            s0 -= mash(arg)
            if s0 < 0:
                s0 += 1
            s1 -= mash(arg)
            if s1 < 0:
                s1 += 1
            s2 -= mash(arg)
            if s2 < 0:
                s2 += 1

        self.args: tuple[str, ...] = tuple(args)
        self._s0 = s0
        self._s1 = s1
        self._s2 = s2
        self._c = 1
        self._draws = 0
        self._lock = threading.Lock()

    @classmethod
    def restore(cls, state: GeneratorState) -> "Alea":
        """Rebuild a generator from a snapshot without re-mixing its seeds."""
        alea = cls.__new__(cls)
        alea.args = tuple(state.seeds)
        alea._s0 = state.s0
        alea._s1 = state.s1
        alea._s2 = state.s2
        alea._c = state.c
        alea._draws = state.draws
        alea._lock = threading.Lock()
        return alea

    def __call__(self) -> float:
        """Advance the state and return the next fraction in [0, 1)."""
        with self._lock:
            return self._draw_unlocked()

    def uint32(self) -> int:
        """Return an integer in [0, 2^32)."""
        return int(self() * TWO_POW_32)

    def fract53(self) -> float:
        """Return a fraction in [0, 1) with 53 bits of randomness (two draws)."""
        with self._lock:
            # Both draws must be adjacent in the stream.
            high = self._draw_unlocked()
            low = self._draw_unlocked()
        return high + int(low * TWO_POW_21) * TWO_POW_NEG_53

    def _draw_unlocked(self) -> float:
        t = ALEA_MULTIPLIER * self._s0 + self._c * TWO_POW_NEG_32
        self._s0 = self._s1
        self._s1 = self._s2
        self._c = int(t)
        self._s2 = t - self._c
        self._draws += 1
        return self._s2

    @property
    def draws(self) -> int:
        """Number of fractions drawn since seeding."""
        return self._draws

    def state(self) -> GeneratorState:
        """Return a snapshot of the current state."""
        with self._lock:
            return GeneratorState(
                s0=self._s0,
                s1=self._s1,
                s2=self._s2,
                c=self._c,
                seeds=list(self.args),
                draws=self._draws,
            )
