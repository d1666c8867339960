"""Draw execution shared by the one-shot endpoints and persisted streams."""
from typing import Any, Sequence

from randkit.errors import ErrorCode, InputError
from randkit.logic.models import DrawOp, DrawResult
from randkit.logic.rng import AleaRNG, RNGBase

# Ops that take a character count.
LENGTH_OPS = {DrawOp.HEX, DrawOp.ID, DrawOp.SECRET}

# Ops only the Alea generator provides.
ALEA_ONLY_OPS = {DrawOp.UINT32, DrawOp.FRACT53}


class DrawEngine:
    """
    Runs draw requests against a provider.

    Implements:
    - count repetitions of one operation
    - default lengths for id/secret when none is given
    - rejection of Alea-only ops on other providers
    """

    def draw(
        self,
        generator: RNGBase,
        op: DrawOp,
        count: int = 1,
        length: int | None = None,
        items: Sequence[Any] | None = None,
    ) -> DrawResult:
        """Draw `count` values of kind `op` from generator, in order."""
        if op in ALEA_ONLY_OPS and not isinstance(generator, AleaRNG):
            raise InputError(
                f"Operation {op.value} requires a seeded stream",
                code=ErrorCode.INVALID_REQUEST,
            )
        if op == DrawOp.HEX and length is None:
            raise InputError(
                "Operation hex requires a length", code=ErrorCode.INVALID_REQUEST
            )
        if op == DrawOp.CHOICE and items is None:
            raise InputError(
                "Operation choice requires items", code=ErrorCode.INVALID_REQUEST
            )

        values = [self._draw_one(generator, op, length, items) for _ in range(count)]
        return DrawResult(op=op, values=values)

    def _draw_one(
        self,
        generator: RNGBase,
        op: DrawOp,
        length: int | None,
        items: Sequence[Any] | None,
    ) -> Any:
        if op == DrawOp.FRACTION:
            return generator.fraction()
        if op == DrawOp.HEX:
            return generator.hex_string(length)
        if op == DrawOp.ID:
            return generator.id(length)
        if op == DrawOp.SECRET:
            return generator.secret(length)
        if op == DrawOp.CHOICE:
            return generator.choice(items)
        if op == DrawOp.UINT32:
            return generator.uint32()
        return generator.fract53()
