#!/usr/bin/env python3
"""
Weighted Sampler Validation Script
==================================

Checks a live WeightedSampler against its probability contract.
Returns validation results (True/False + errors) - does NOT modify the sampler.

Rules Enforced:
1. Every weight is finite and non-negative
2. Likelihoods sum to 1.0 and each equals weight / total
3. Partition intervals tile [0, 1) with widths equal to likelihoods
4. Boundary draws (0.0 and just below 1.0) select the first and last items
5. next_many(count) returns exactly count items, all from the mapping
6. Observed frequencies converge to likelihoods over many seeded draws
"""

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import argparse
import math
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.modules.random_source import SequenceRandom, seeded
from src.modules.sampler_settings import (
    BOUNDARY_HIGH_DRAW,
    CONVERGENCE_TOLERANCE,
    CONVERGENCE_TRIALS,
    PROBABILITY_TOLERANCE,
)
from src.modules.weighted_sampler import WeightError, WeightedSampler


DEFAULT_WEIGHTS = "gold=1,silver=2,bronze=7"


def parse_weights(text: str) -> Dict[str, float]:
    """
    Parse "name=weight,name=weight" into an ordered dict.

    Raises ValueError on malformed pairs. Weight values are checked later by the
    sampler itself.
    """
    weights: Dict[str, float] = {}
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, raw = part.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Expected name=weight, got {part!r}")
        name = name.strip()
        if name in weights:
            raise ValueError(f"Duplicate name {name!r} in weights")
        weights[name] = float(raw)
    return weights


class SamplerValidator:
    """Validates a WeightedSampler against its probability contract."""

    @staticmethod
    def validate_weights(weights: Dict[Any, float]) -> Tuple[bool, List[str]]:
        errors = []
        for item, w in weights.items():
            if w is None or not math.isfinite(w):
                errors.append(f"Weight for {item!r} is not finite: {w!r}")
            elif w < 0:
                errors.append(f"Weight for {item!r} is negative: {w}")
        return (len(errors) == 0, errors)

    @staticmethod
    def validate_likelihoods(sampler: WeightedSampler) -> Tuple[bool, List[str]]:
        """
        Likelihoods must sum to 1.0 and match weight / total per item.
        """
        errors = []
        total = sampler.total_weight()
        likelihoods = sampler.likelihoods()

        s = math.fsum(likelihoods.values())
        if abs(s - 1.0) > PROBABILITY_TOLERANCE:
            errors.append(f"Likelihoods sum to {s}, expected 1.0")

        for item, p in likelihoods.items():
            expected = sampler.weight(item) / total
            if abs(p - expected) > PROBABILITY_TOLERANCE:
                errors.append(f"Likelihood of {item!r} is {p}, expected {expected}")

        return (len(errors) == 0, errors)

    @staticmethod
    def validate_partition(sampler: WeightedSampler) -> Tuple[bool, List[str]]:
        """
        Intervals must be contiguous from 0.0 to exactly 1.0, one per
        positive-weight item, each as wide as that item's likelihood.
        """
        errors = []
        partition = sampler.partition()
        bounds = partition.bounds

        if len(bounds) != len(partition.items):
            errors.append(f"Partition has {len(bounds)} bounds for {len(partition.items)} items")
            return (False, errors)

        lo = 0.0
        for hi, item in zip(bounds, partition.items):
            if hi <= lo:
                errors.append(f"Bounds not increasing at {item!r}: [{lo}, {hi})")
            elif abs((hi - lo) - sampler.likelihood(item)) > PROBABILITY_TOLERANCE:
                errors.append(f"Interval width for {item!r} is {hi - lo}, expected {sampler.likelihood(item)}")
            lo = hi

        if bounds and bounds[-1] != 1.0:
            errors.append(f"Last upper bound is {bounds[-1]}, expected 1.0")

        selectable = [k for k, w in sampler.weights().items() if w > 0]
        if list(partition.items) != selectable:
            errors.append("Partition items do not match the positive-weight items")

        return (len(errors) == 0, errors)

    @staticmethod
    def validate_boundaries(sampler: WeightedSampler) -> Tuple[bool, Optional[str]]:
        """
        0.0 must select the first partitioned item and a draw just below 1.0 the last.
        """
        intervals = sampler.partition().intervals()
        first, last = intervals[0][2], intervals[-1][2]

        # The last interval may be narrower than 1 - BOUNDARY_HIGH_DRAW
        high_draw = max(BOUNDARY_HIGH_DRAW, intervals[-1][0])
        probe = WeightedSampler(sampler.weights(), rng=SequenceRandom([0.0, high_draw]))
        low, high = probe.next_many(2)
        if low != first:
            return False, f"Draw 0.0 selected {low!r}, expected {first!r}"
        if high != last:
            return False, f"Draw {high_draw} selected {high!r}, expected {last!r}"
        return True, None

    @staticmethod
    def validate_draws(sampler: WeightedSampler, count: int) -> Tuple[bool, List[str]]:
        errors = []
        drawn = sampler.next_many(count)
        if len(drawn) != count:
            errors.append(f"next_many({count}) returned {len(drawn)} items")
        unknown = {d for d in drawn if d not in sampler}
        if unknown:
            errors.append(f"Drawn items not in mapping: {sorted(map(repr, unknown))}")
        zero = {d for d in drawn if sampler.weight(d) == 0.0} if not unknown else set()
        if zero:
            errors.append(f"Zero-weight items were drawn: {sorted(map(repr, zero))}")
        return (len(errors) == 0, errors)

    @staticmethod
    def validate_convergence(
        sampler: WeightedSampler,
        trials: int = CONVERGENCE_TRIALS,
        tolerance: float = CONVERGENCE_TOLERANCE,
    ) -> Tuple[bool, List[str]]:
        """
        Observed frequency of every item must be within tolerance of its likelihood.
        """
        errors = []
        counts = Counter(sampler.next_many(trials))
        for item, p in sampler.likelihoods().items():
            observed = counts.get(item, 0) / trials
            if abs(observed - p) > tolerance:
                errors.append(
                    f"{item!r}: observed {observed:.4f}, expected {p:.4f} (tolerance {tolerance})"
                )
        return (len(errors) == 0, errors)

    def validate_sampler(
        self,
        sampler: WeightedSampler,
        trials: int = CONVERGENCE_TRIALS,
        tolerance: float = CONVERGENCE_TOLERANCE,
    ) -> Tuple[bool, List[str]]:
        """
        Run every check. Sampler errors (empty, all-zero) are reported, not raised.
        """
        errors = []

        ok, weight_errors = self.validate_weights(sampler.weights())
        errors.extend(weight_errors)
        if not ok:
            return (False, errors)

        try:
            errors.extend(self.validate_likelihoods(sampler)[1])
            errors.extend(self.validate_partition(sampler)[1])

            ok, boundary_error = self.validate_boundaries(sampler)
            if not ok:
                errors.append(boundary_error)

            errors.extend(self.validate_draws(sampler, min(trials, 1000))[1])
            errors.extend(self.validate_convergence(sampler, trials, tolerance)[1])
        except WeightError as e:
            errors.append(f"{type(e).__name__}: {e}")

        return (len(errors) == 0, errors)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate weighted sampler behaviour for a weight map.")
    parser.add_argument("--weights", default=DEFAULT_WEIGHTS, help=f"name=weight pairs. Default: {DEFAULT_WEIGHTS}")
    parser.add_argument("--trials", type=int, default=CONVERGENCE_TRIALS, help="Draws for the convergence check.")
    parser.add_argument("--seed", type=int, default=0, help="Seed for the sampler's random source.")
    parser.add_argument("--tolerance", type=float, default=CONVERGENCE_TOLERANCE, help="Max frequency deviation.")
    args = parser.parse_args(argv)

    try:
        weights = parse_weights(args.weights)
        sampler = WeightedSampler(weights, rng=seeded(args.seed))
    except ValueError as e:
        print(f"✗ Invalid weights: {e}")
        return 1

    print(f"Validating {len(sampler)} items over {args.trials} draws (seed={args.seed})...")
    is_valid, errors = SamplerValidator().validate_sampler(sampler, args.trials, args.tolerance)

    if is_valid:
        for item, p in sampler.likelihoods().items():
            print(f"  {item}: {p:.4f}")
        print("\n✓ Sampler valid")
        return 0

    print(f"\n✗ {len(errors)} error(s):")
    for e in errors:
        print(f"  - {e}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
