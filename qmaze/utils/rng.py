"""Random number generation utilities for exploration and maze generation."""

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Seeded random number generator for reproducible results.

    Each instance owns its own stream so that training runs can be
    reproduced without touching global random state.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return self._random.random()

    def choice(self, seq: Sequence[T]) -> T:
        """Choose random element from sequence."""
        return self._random.choice(seq)

    def sample(self, population, k: int):
        """Sample k elements from population without replacement."""
        return self._random.sample(population, k)
