#!/usr/bin/env python3
"""Draw frequency export.

Draws N items from a weight map and exports, per item:
- weight and expected likelihood
- observed count and frequency
- deviation (observed - expected)

Excel -> data/extracts/generated/ (or WEIGHTED_SAMPLER_EXPORT_DIR)
"""

from __future__ import annotations

import os
import sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import argparse
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from openpyxl import Workbook

from scripts.validation.validate_weighted_sampler import DEFAULT_WEIGHTS, parse_weights
from src.modules.random_source import seeded
from src.modules.sampler_settings import DEFAULT_EXPORT_TRIALS, export_dir_from_env
from src.modules.weighted_sampler import WeightedSampler


# ============================================================
# CONFIG
# ============================================================

SHEET_NAME = "DrawFrequencies"
COLUMNS = ["item", "weight", "likelihood", "observed_count", "observed_frequency", "deviation"]


# ============================================================
# UTILITIES
# ============================================================

def _now_utc_naive() -> datetime:
    """Timezone-naive UTC now (Excel-compatible)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _default_out_path() -> Path:
    stamp = _now_utc_naive().strftime("%Y%m%d_%H%M%S")
    return export_dir_from_env() / f"draw_frequencies_{stamp}.xlsx"


# ============================================================
# ROWS
# ============================================================

def draw_frequency_rows(sampler: WeightedSampler, trials: int) -> List[Dict[str, Any]]:
    """
    One row per item, in mapping order. Zero-weight items get a row with 0 counts.
    """
    if trials <= 0:
        raise ValueError(f"trials must be > 0, got {trials}")

    likelihoods = sampler.likelihoods()
    counts = Counter(sampler.next_many(trials))

    rows: List[Dict[str, Any]] = []
    for item, p in likelihoods.items():
        observed = counts.get(item, 0)
        freq = observed / trials
        rows.append({
            "item": str(item),
            "weight": sampler.weight(item),
            "likelihood": p,
            "observed_count": observed,
            "observed_frequency": freq,
            "deviation": freq - p,
        })
    return rows


def write_xlsx(
    *,
    out_path: Path,
    sheet_name: str,
    rows: List[Dict[str, Any]],
) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]
    ws.append(COLUMNS)
    for r in rows:
        ws.append([r.get(c) for c in COLUMNS])
    wb.save(out_path)


# ============================================================
# MAIN
# ============================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export expected vs observed draw frequencies to Excel.")
    parser.add_argument("--weights", default=DEFAULT_WEIGHTS, help=f"name=weight pairs. Default: {DEFAULT_WEIGHTS}")
    parser.add_argument("--trials", type=int, default=DEFAULT_EXPORT_TRIALS, help="Number of draws.")
    parser.add_argument("--seed", type=int, default=None, help="Seed. Default: shared random source.")
    parser.add_argument("--out", type=Path, default=None, help="Output .xlsx path.")
    args = parser.parse_args(argv)

    rng = seeded(args.seed) if args.seed is not None else None
    try:
        sampler = WeightedSampler(parse_weights(args.weights), rng=rng)
        rows = draw_frequency_rows(sampler, args.trials)
    except ValueError as e:
        print(f"✗ Export failed: {e}")
        return 1

    out_path = args.out or _default_out_path()
    write_xlsx(out_path=out_path, sheet_name=SHEET_NAME, rows=rows)

    print(f"Export complete: {args.trials} draws")
    for r in rows:
        print(f"  {r['item']}: {r['observed_count']} ({r['observed_frequency']:.4f} vs {r['likelihood']:.4f})")
    print(f"\n-> {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
