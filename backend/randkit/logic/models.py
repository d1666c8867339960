"""Generator state, alphabets and draw result models."""
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


# Visually unambiguous characters for human-facing identifiers.
# Excludes 0/O, 1/I/l and also U/V (about 5.78 bits per character).
UNMISTAKABLE_CHARS = "23456789ABCDEFGHJKLMNPQRSTWXYZabcdefghijkmnopqrstuvwxyz"

# URL-safe 64-symbol alphabet, exactly 6 bits per character.
BASE64_CHARS = (
    "abcdefghijklmnopqrstuvwxyz" "ABCDEFGHIJKLMNOPQRSTUVWXYZ" "0123456789-_"
)

HEX_CHARS = "0123456789abcdef"


class DrawOp(str, Enum):
    """Operations a caller can request against a generator."""

    FRACTION = "fraction"
    HEX = "hex"
    ID = "id"
    SECRET = "secret"
    CHOICE = "choice"
    UINT32 = "uint32"
    FRACT53 = "fract53"


class GeneratorState(BaseModel):
    """
    Snapshot of an Alea generator.

    Holds the three fractional state words and the integer carry, plus the
    seed text the generator was built from. Floats survive a JSON round
    trip exactly, so a restored snapshot continues the identical stream.
    """

    s0: float
    s1: float
    s2: float
    c: int = 1
    seeds: list[str] = Field(default_factory=list)
    draws: int = 0


class DrawResult(BaseModel):
    """Result of one draw request."""

    op: DrawOp
    values: list[Any] = Field(default_factory=list)
