"""
Random number utilities for deterministic behavior.

RandomSource is passed explicitly to every component that needs randomness,
so that a run is reproducible from its seed alone.
"""

from typing import List, Optional

import numpy as np


class RandomSource:
    """Seedable uniform generator for integer ranges and [0, 1) doubles."""

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Seed for the generator. If None, one is drawn from OS entropy
                and kept in self.seed so the run can be repeated.
        """
        if seed is None:
            seed = int(np.random.SeedSequence().entropy % (2**63))
        self.seed = seed
        self._gen = np.random.Generator(np.random.PCG64(seed))

    def next_uint(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        if n <= 0:
            raise ValueError(f"next_uint requires n > 0, got {n}")
        return int(self._gen.integers(0, n))

    def next_double(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._gen.random())

    def shuffle_rows(self, array: np.ndarray, n: int) -> None:
        """
        Fisher-Yates shuffle of the first n rows of a 2-D array, in place.

        Args:
            array: Array whose leading rows are permuted
            n: Number of leading rows to permute
        """
        if n > array.shape[0]:
            raise ValueError(f"Cannot shuffle {n} rows of an array with {array.shape[0]} rows")
        for i in range(n - 1, 0, -1):
            r = self.next_uint(i + 1)
            if r != i:
                array[[i, r]] = array[[r, i]]

    def shuffle_list(self, items: List) -> None:
        """Fisher-Yates shuffle of a list, in place."""
        for i in range(1, len(items)):
            r = self.next_uint(i + 1)
            items[i], items[r] = items[r], items[i]

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed})"
