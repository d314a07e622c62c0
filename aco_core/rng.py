"""
aco_core/rng.py
───────────────
The one source of randomness the engine is allowed to use.

Every stochastic draw — node placement, ant start nodes, roulette-wheel
spins — goes through a RandomSource passed in by the caller. Nothing in
aco_core touches a module-level or global generator, so a fixed seed
reproduces an identical tick sequence.

numpy.random.Generator satisfies the protocol as-is. Tests may pass any
object with the same two methods (e.g. a scripted sequence of draws).
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

import numpy as np


class RandomSource(Protocol):
    """The subset of numpy.random.Generator the engine relies on."""

    def random(self, size: Any = None) -> Any:
        """Uniform float(s) in [0, 1)."""
        ...

    def integers(self, low: int, high: Optional[int] = None, size: Any = None) -> Any:
        """Uniform integer(s) in [low, high)."""
        ...


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """PCG64-backed generator. seed=None draws fresh OS entropy."""
    return np.random.default_rng(seed)
