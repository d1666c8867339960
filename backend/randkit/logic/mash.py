"""Mash string-mixing function used to seed the Alea generator.

The arithmetic below must stay in this exact order with IEEE-754 doubles.
Reordering the steps changes rounding and breaks the seeded streams that
other Alea ports produce for the same seeds.
"""
import struct

MASH_VERSION = "Mash 0.9"

MASH_INITIAL = 0xEFC8249D
MASH_MULTIPLIER = 0.02519603282416938
TWO_POW_32 = 4294967296.0  # 2^32
TWO_POW_NEG_32 = 2.3283064365386963e-10  # 2^-32
UINT32_MASK = 0xFFFFFFFF


def code_units(text: str) -> tuple[int, ...]:
    """Return the UTF-16 code units of text (astral characters become surrogate pairs)."""
    raw = text.encode("utf-16-le", "surrogatepass")
    return struct.unpack(f"<{len(raw) // 2}H", raw)


class Mash:
    """
    One Mash accumulator.

    Every call folds the text of `data` into the accumulator and returns the
    accumulator as a fraction in [0, 1). Successive calls on the same
    instance depend on each other; separate instances share nothing.
    """

    version = MASH_VERSION

    def __init__(self) -> None:
        self._n: float = float(MASH_INITIAL)

    def __call__(self, data: object) -> float:
        n = self._n
        for ch in code_units(str(data)):
            n += ch
            h = MASH_MULTIPLIER * n
            n = int(h) & UINT32_MASK
            h -= n
            h *= n
            n = int(h) & UINT32_MASK
            h -= n
            # Kept as a double until the next truncation.
            n += h * TWO_POW_32
        self._n = float(n)
        return (int(self._n) & UINT32_MASK) * TWO_POW_NEG_32
