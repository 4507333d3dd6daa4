"""
random_source.py

Random sources for weighted sampling.

Any object with a random() -> float in [0, 1) method can drive a sampler;
random.Random and its subclasses are the expected implementations.
The process-wide shared generator is created once, on first use, and handed
to every sampler that does not bring its own.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional

from src.modules.sampler_settings import seed_from_env

logger = logging.getLogger(__name__)

_shared: Optional[random.Random] = None


def shared_random() -> random.Random:
    """
    Return the process-wide shared generator, creating it on first call.

    The seed comes from WEIGHTED_SAMPLER_SEED when set.
    """
    global _shared
    if _shared is None:
        seed = seed_from_env()
        _shared = random.Random(seed)
        logger.debug("Created shared random source (seed=%r)", seed)
    return _shared


def reset_shared_random() -> None:
    """Drop the shared generator so the next call re-reads the environment."""
    global _shared
    _shared = None


def seeded(seed: int) -> random.Random:
    """Independent deterministic generator."""
    return random.Random(seed)


class SequenceRandom(random.Random):
    """
    Replays a fixed list of uniform values, cycling when exhausted.

    Used to probe exact partition boundaries.
    """

    def __init__(self, values: Iterable[float]):
        self._values: List[float] = [float(v) for v in values]
        if not self._values:
            raise ValueError("SequenceRandom needs at least one value.")
        for v in self._values:
            if not 0.0 <= v < 1.0:
                raise ValueError(f"Uniform value must be in [0,1), got {v}.")
        self._pos = 0
        super().__init__(0)

    def random(self) -> float:
        v = self._values[self._pos]
        self._pos = (self._pos + 1) % len(self._values)
        return v
