from __future__ import annotations

import random
from dataclasses import dataclass


@dataclass
class RNG:
    """Seedable random source. seed=None draws from system entropy."""

    seed: int | None = None

    def __post_init__(self) -> None:
        self._r = random.Random(self.seed)

    def randint(self, a: int, b: int) -> int:
        return self._r.randint(a, b)
