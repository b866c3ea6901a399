# interviewxpert/engine/randomness.py
"""
Reproducible randomness for fallback question selection.

The generator is a small linear congruential generator. It exists so that a
fixed seed always yields the same question order (handy for test fixtures);
it is not suitable for anything security related.
"""

import zlib
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

_MULTIPLIER = 9301
_INCREMENT = 49297
_MODULUS = 233280


class SeededRandom:
    """LCG returning floats in [0, 1)."""

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._state = self.seed

    def __call__(self) -> float:
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS


def fisher_yates(items: Sequence[T], rng: Callable[[], float]) -> List[T]:
    """Return a shuffled copy of ``items``."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def _user_fragment(user_id: str) -> int:
    tail = user_id[-8:]
    try:
        return int(tail, 16)
    except ValueError:
        return zlib.crc32(user_id.encode("utf-8"))


def seed_for_user(user_id: str, now_ms: int) -> int:
    """Seed from a hash fragment of the user id plus wall-clock milliseconds."""
    return _user_fragment(user_id or "") + int(now_ms)
