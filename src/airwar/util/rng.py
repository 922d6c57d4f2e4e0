"""Deterministic random number generator.

mulberry32 over a 32-bit state.  Output is bit-exact with the browser
version of the game, so a seed replays identically on either side.

Every probabilistic decision in the engine draws from one shared
``DeterministicRNG`` owned by the world; its 32-bit state is part of
the persisted snapshot.
"""

from __future__ import annotations

import math
from typing import MutableSequence, Optional, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    """Low 32 bits of a * b (JavaScript ``Math.imul`` without the sign)."""
    return (a * b) & _MASK32


class DeterministicRNG:
    """Seeded pseudo-random stream.

    Args:
        seed: Any integer; reduced to unsigned 32 bits.
    """

    def __init__(self, seed: int) -> None:
        self.seed = seed & _MASK32
        self._state = self.seed

    def next(self) -> float:
        """Return the next float in [0, 1)."""
        self._state = (self._state + _INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def next_int(self, min_value: int, max_value: int) -> int:
        """Random integer in [min_value, max_value] (both inclusive)."""
        return math.floor(self.next() * (max_value - min_value + 1)) + min_value

    def next_float(self, min_value: float, max_value: float) -> float:
        """Random float in [min_value, max_value)."""
        return self.next() * (max_value - min_value) + min_value

    def next_bool(self, p: float = 0.5) -> bool:
        """Bernoulli trial: True with probability p."""
        return self.next() < p

    def choice(self, seq: Sequence[T]) -> Optional[T]:
        """Uniformly pick one element, or None if seq is empty."""
        if len(seq) == 0:
            return None
        return seq[math.floor(self.next() * len(seq))]

    def shuffle(self, seq: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates shuffle in place; returns seq for chaining."""
        for i in range(len(seq) - 1, 0, -1):
            j = math.floor(self.next() * (i + 1))
            seq[i], seq[j] = seq[j], seq[i]
        return seq

    # -- State -----------------------------------------------------------

    def reset(self) -> None:
        """Rewind to the original seed (not to a restored state)."""
        self._state = self.seed

    def get_state(self) -> int:
        """Current 32-bit state, for persistence."""
        return self._state

    def set_state(self, state: int) -> None:
        """Restore a state previously returned by get_state()."""
        self._state = int(state) & _MASK32

    def __repr__(self) -> str:
        return f"DeterministicRNG(seed={self.seed}, state={self._state})"
