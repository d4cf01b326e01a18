"""
Deterministic pseudo-random source.

Mulberry32 over fixed-width 32-bit integer arithmetic. The generator's
whole state is one unsigned integer, which is persisted in the world state
between ticks so a run can be paused, replayed, or branched at any tick.
Nothing in the simulation may draw randomness from anywhere else.
"""

from __future__ import annotations

from typing import MutableSequence, TypeVar

T = TypeVar("T")

_MASK = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_DIVISOR = 4294967296.0  # 2**32


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK


class DeterministicRNG:
    """
    Seeded generator producing floats in ``[0, 1)``.

    Construct from a seed or from a previously emitted :attr:`state`;
    both are the same thing, so ``DeterministicRNG(rng.state)`` resumes
    the stream exactly where ``rng`` left off.
    """

    def __init__(self, seed: int) -> None:
        self._state = int(seed) & _MASK

    @property
    def state(self) -> int:
        """Current internal state, suitable for serialization."""
        return self._state

    def next(self) -> float:
        """Advance the stream and return a float in ``[0, 1)``."""
        self._state = (self._state + _INCREMENT) & _MASK
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / _DIVISOR

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """In-place Fisher-Yates shuffle; returns the same sequence."""
        current = len(items)
        while current != 0:
            pick = int(self.next() * current)
            current -= 1
            items[current], items[pick] = items[pick], items[current]
        return items

    def __repr__(self) -> str:
        return f"DeterministicRNG(state={self._state})"
