"""Deterministic random streams.

Samplers and the simulator only rely on the :class:`RandomStream` protocol so
tests can substitute a scripted stream. Each worker owns its own stream;
:meth:`RandomState.spawn` derives independent child streams from one seed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

import numpy as np


class RandomStream(Protocol):
    """Source of randomness used by the samplers."""

    def uniform(self) -> float:
        """Draw from U[0, 1)."""

    def integers(self, high: int) -> int:
        """Draw an integer uniformly from [0, high)."""

    def dirichlet(self, alpha: Sequence[float]) -> np.ndarray:
        """Draw a probability vector from Dirichlet(alpha)."""

    def multinomial(self, n: int, pvals: Sequence[float]) -> np.ndarray:
        """Draw counts summing to ``n`` with event probabilities ``pvals``."""


@dataclass(slots=True)
class RandomState:
    """numpy ``Generator`` backed :class:`RandomStream`."""

    seed: Optional[int]
    generator: np.random.Generator

    @classmethod
    def create(cls, seed: Optional[int] = None) -> "RandomState":
        return cls(seed=seed, generator=np.random.default_rng(seed))

    def spawn(self, n_streams: int) -> List["RandomState"]:
        """Derive ``n_streams`` statistically independent child streams."""

        return [
            RandomState(seed=self.seed, generator=child)
            for child in self.generator.spawn(n_streams)
        ]

    def uniform(self) -> float:
        return float(self.generator.random())

    def integers(self, high: int) -> int:
        return int(self.generator.integers(high))

    def dirichlet(self, alpha: Sequence[float]) -> np.ndarray:
        return self.generator.dirichlet(alpha)

    def multinomial(self, n: int, pvals: Sequence[float]) -> np.ndarray:
        return self.generator.multinomial(n, pvals)


def choose_rng(seed: Optional[int]) -> RandomState:
    """Convenience helper to create a ``RandomState``."""

    return RandomState.create(seed)
