from __future__ import annotations

_MASK = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


class Mulberry32:
    """
    Seeded 32-bit PRNG producing floats in [0, 1).

    All state lives in the instance, so two generators built from the same
    seed yield the same sequence regardless of what else runs in between.
    """

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _MASK

    def next_float(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK
        s = self._state
        t = _imul(s ^ (s >> 15), 1 | s)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK) ^ t
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    __call__ = next_float


def mulberry32(seed: int) -> Mulberry32:
    return Mulberry32(seed)
