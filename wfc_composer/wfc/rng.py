"""
Seeded random source shared by every canvas of one generation run.
"""

from typing import Optional

import numpy as np


class Random:
    """
    Reproducible uniform draws backed by a numpy Generator.

    When no seed is given one is drawn from fresh OS entropy and kept, so a
    failing run can be replayed with `Random(seed)`.

    Example:
        >>> rng = Random(42)
        >>> rng.seed
        42
        >>> 0.0 <= rng.random() < 1.0
        True
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = int(np.random.SeedSequence().generate_state(1)[0])
        self._seed = int(seed)
        self._generator = np.random.default_rng(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def random(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._generator.random())

    def __repr__(self) -> str:
        return f"Random(seed={self._seed})"
