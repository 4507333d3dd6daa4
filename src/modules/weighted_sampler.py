"""
weighted_sampler.py

Weighted random selection over a mutable {item: weight} mapping.
All callers MUST use this module instead of ad-hoc weighted selection logic.

Design goals:
- deterministic when seeded (inject any random.Random instance)
- validates every weight (finite, non-negative) at the point it is set
- explicit failures for empty and all-zero distributions (never NaN)
- O(log n) draws: cumulative upper bounds searched with bisect
"""

from __future__ import annotations

import bisect
import itertools
import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar

from src.modules.random_source import shared_random

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ============================================================
# ERRORS
# ============================================================

class WeightError(ValueError):
    pass


class InvalidWeight(WeightError):
    """Weight is negative, not finite, or not a number."""


class ItemNotFound(WeightError):
    """Queried item is not in the mapping."""


class EmptyDistribution(WeightError):
    """Draw requested from a sampler with no items."""


class DegenerateDistribution(WeightError):
    """Total weight is zero, so no item is selectable."""


def _checked_weight(item: Any, weight: Any) -> float:
    if weight is None:
        raise InvalidWeight(f"Weight is None for key={item!r}.")
    if isinstance(weight, (bool, str, bytes)):
        raise InvalidWeight(f"Weight must be a number, got {weight!r} for key={item!r}.")
    try:
        w = float(weight)
    except (TypeError, ValueError):
        raise InvalidWeight(f"Weight must be a number, got {weight!r} for key={item!r}.") from None
    if not math.isfinite(w):
        raise InvalidWeight(f"Non-finite weight {w} for key={item!r}.")
    if w < 0.0:
        raise InvalidWeight(f"Negative weight {w} for key={item!r}.")
    return w


def _checked_total(weights: Iterable[float], item: Any = None) -> float:
    """Sum of weights; InvalidWeight if it is not a finite float."""
    try:
        total = math.fsum(weights)
    except OverflowError:
        total = math.inf
    if not math.isfinite(total):
        culprit = f" with key={item!r}" if item is not None else ""
        raise InvalidWeight(f"Sum of weights overflows{culprit}.")
    return total


def _checked_weights(items: Mapping[Any, Any]) -> Dict[Any, float]:
    checked = {item: _checked_weight(item, w) for item, w in items.items()}
    _checked_total(checked.values())
    return checked


def _checked_insert(weights: Dict[Any, float], item: Any, weight: Any) -> None:
    """Set weights[item] only if the new total stays finite."""
    w = _checked_weight(item, weight)
    others = (v for k, v in weights.items() if k != item)
    _checked_total(itertools.chain(others, (w,)), item)
    weights[item] = w


# ============================================================
# PARTITION
# ============================================================

@dataclass(frozen=True)
class Partition(Generic[T]):
    """
    Tiling of [0, 1) into one half-open interval per selectable item.

    bounds[i] is the upper bound of items[i]; the lower bound is the previous
    upper bound (0.0 for the first). Zero-weight items own empty intervals
    and are left out. The final bound is exactly 1.0.
    """
    bounds: Tuple[float, ...]
    items: Tuple[T, ...]

    @classmethod
    def build(cls, weights: Mapping[T, float], total: float) -> "Partition[T]":
        if total <= 0.0:
            raise DegenerateDistribution("Sum of weights must be > 0.")

        bounds: List[float] = []
        items: List[T] = []
        offset = 0.0
        for item, w in weights.items():
            if w <= 0.0:
                continue
            offset += w / total
            bounds.append(offset)
            items.append(item)

        # Accumulated rounding may leave the last bound just short of 1.0
        bounds[-1] = 1.0
        return cls(bounds=tuple(bounds), items=tuple(items))

    def __len__(self) -> int:
        return len(self.items)

    def select(self, r: float) -> T:
        """Item whose interval contains r (lo <= r < hi)."""
        i = bisect.bisect_right(self.bounds, r)
        return self.items[min(i, len(self.items) - 1)]

    def intervals(self) -> List[Tuple[float, float, T]]:
        out: List[Tuple[float, float, T]] = []
        lo = 0.0
        for hi, item in zip(self.bounds, self.items):
            out.append((lo, hi, item))
            lo = hi
        return out


# ============================================================
# SAMPLER
# ============================================================

class WeightedSampler(Generic[T]):
    """
    A mutable weight mapping plus a random source.

    Weights are relative: only their ratio to the total matters. The partition
    is rebuilt from the mapping on every draw call, so mutations are visible
    immediately. Not thread-safe; callers sharing an instance must lock.
    """

    def __init__(
        self,
        items: Optional[Mapping[T, float]] = None,
        rng: Optional[random.Random] = None,
    ):
        self._rng = rng if rng is not None else shared_random()
        self._weights: Dict[T, float] = _checked_weights(items) if items else {}

    @staticmethod
    def builder() -> "WeightedSamplerBuilder[Any]":
        return WeightedSamplerBuilder()

    @property
    def rng(self) -> random.Random:
        return self._rng

    def __len__(self) -> int:
        return len(self._weights)

    def __contains__(self, item: object) -> bool:
        return item in self._weights

    def __repr__(self) -> str:
        return f"WeightedSampler({self._weights!r})"

    # --- mutation ---

    def set(self, item: T, weight: float) -> None:
        """
        Set the weight of an item, inserting it if needed.

        Any non-negative value; it only matters relative to the other weights.
        Rejected if the total weight would no longer fit in a float.
        """
        _checked_insert(self._weights, item, weight)

    def remove(self, item: T) -> None:
        self._weights.pop(item, None)

    def clear(self) -> None:
        self._weights.clear()

    # --- queries ---

    def weight(self, item: T) -> float:
        try:
            return self._weights[item]
        except KeyError:
            raise ItemNotFound(f"No weight for key={item!r}.") from None

    def weights(self) -> Dict[T, float]:
        return dict(self._weights)

    def total_weight(self) -> float:
        # fsum keeps the total reproducible regardless of magnitude mix
        return math.fsum(self._weights.values())

    def likelihood(self, item: T) -> float:
        """
        Probability in [0, 1] of drawing item.

        Raises ItemNotFound for unknown items, DegenerateDistribution when every
        weight is zero.
        """
        w = self.weight(item)
        total = self.total_weight()
        if total <= 0.0:
            raise DegenerateDistribution("Sum of weights must be > 0.")
        return w / total

    def likelihoods(self) -> Dict[T, float]:
        if not self._weights:
            return {}
        total = self.total_weight()
        if total <= 0.0:
            raise DegenerateDistribution("Sum of weights must be > 0.")
        return {k: w / total for k, w in self._weights.items()}

    def partition(self) -> Partition[T]:
        if not self._weights:
            raise EmptyDistribution("Weight map is empty.")
        p = Partition.build(self._weights, self.total_weight())
        logger.debug("Built partition over %d of %d items", len(p), len(self._weights))
        return p

    # --- draws ---

    def next(self) -> T:
        """Draw a single item."""
        return self.partition().select(self._rng.random())

    def next_many(self, count: int) -> List[T]:
        """
        Draw count items independently, with replacement.

        The same item may appear several times. count=0 returns [].
        """
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError(f"count must be an int, got {count!r}.")
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}.")

        p = self.partition()
        logger.debug("Drawing %d items", count)
        return [p.select(self._rng.random()) for _ in range(count)]


# ============================================================
# BUILDER
# ============================================================

class WeightedSamplerBuilder(Generic[T]):
    """Fluent construction of a WeightedSampler."""

    def __init__(self):
        self._items: Dict[T, float] = {}
        self._rng: Optional[random.Random] = None

    def random(self, rng: random.Random) -> "WeightedSamplerBuilder[T]":
        self._rng = rng
        return self

    def item(self, item: T, weight: float) -> "WeightedSamplerBuilder[T]":
        _checked_insert(self._items, item, weight)
        return self

    def items(self, items: Mapping[T, float]) -> "WeightedSamplerBuilder[T]":
        merged = dict(self._items)
        merged.update(_checked_weights(items))
        _checked_total(merged.values())
        self._items = merged
        return self

    def apply(self, sampler: WeightedSampler[T]) -> WeightedSampler[T]:
        """Copy this builder's weights into an existing sampler."""
        for item, w in self._items.items():
            sampler.set(item, w)
        return sampler

    def build(self) -> WeightedSampler[T]:
        return WeightedSampler(dict(self._items), rng=self._rng)


# ============================================================
# HELPERS
# ============================================================

def normalised(weight_map: Mapping[T, float]) -> Dict[T, float]:
    """
    Returns a new dict with weights normalised to sum to 1.0.
    """
    if not weight_map:
        raise EmptyDistribution("Weight map is empty.")
    return WeightedSampler(weight_map).likelihoods()


def weighted_choice(weight_map: Mapping[T, float], rng: Optional[random.Random] = None) -> T:
    """
    Weighted random choice from a dict {item: weight}.
    """
    return WeightedSampler(weight_map, rng=rng).next()
