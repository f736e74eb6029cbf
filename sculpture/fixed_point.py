"""
Fixed-point hash engine.

Integer replica of the pseudo-random source the minting contract uses to
place holes. Every value is an integer scaled by ``config.fp``; Python ints
are unbounded, so the products in the dot step never overflow.
"""

from __future__ import annotations

import math

from config import DEFAULT_CONFIG, SculptureConfig


def trunc_div(value: int, denom: int) -> int:
    """Integer division rounding toward zero (Solidity / JS ``Math.trunc``)."""
    q = abs(value) // abs(denom)
    return q if (value >= 0) == (denom > 0) else -q


def pos_mod(value: int, modulus: int) -> int:
    """Non-negative remainder: ``((v % m) + m) % m`` for a positive modulus."""
    return value % modulus


def js_round(value: float) -> int:
    """
    Round half toward positive infinity, like JavaScript's ``Math.round``.

    The fraction is compared directly; ``floor(value + 0.5)`` would round
    0.49999999999999994 up because the addition itself rounds.
    """
    whole = math.floor(value)
    return whole + (1 if value - whole >= 0.5 else 0)


def clamp(value, lo, hi):
    return min(hi, max(lo, value))


class FixedPointHash:
    """
    Deterministic 2D hash ``(x, y) -> [0, fp)``.

    The constants come from the injected config so the engine can be
    exercised at alternate scales in isolation.
    """

    def __init__(self, config: SculptureConfig = DEFAULT_CONFIG):
        self.config = config

    def __call__(self, x: int, y: int) -> int:
        fp = self.config.fp
        mul = self.config.hash_multiplier
        div = self.config.hash_divisor
        c = self.config.hash_offset

        p3x = pos_mod(trunc_div(x * mul, div), fp)
        p3y = pos_mod(trunc_div(y * mul, div), fp)
        p3z = p3x

        dot = trunc_div(p3x * (p3y + c) + p3y * (p3z + c) + p3z * (p3x + c), fp)
        qx = p3x + dot
        qy = p3y + dot
        qz = p3z + dot

        return pos_mod(trunc_div((qx + qy) * qz, fp), fp)


def hash12(x: int, y: int, config: SculptureConfig = DEFAULT_CONFIG) -> int:
    """Functional form of :class:`FixedPointHash`."""
    return FixedPointHash(config)(x, y)
