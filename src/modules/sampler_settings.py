"""
sampler_settings.py

Single source of truth for weighted sampler constants and environment settings.
Validation scripts, exports and tests MUST read tolerances and trial counts here
instead of hardcoding them.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional


class SettingsError(ValueError):
    pass


# ============================================================
# NUMERIC TOLERANCES
# ============================================================

# Likelihoods of a non-degenerate sampler must sum to 1.0 within this tolerance
PROBABILITY_TOLERANCE = 1e-9

# Draw used to probe the upper edge of the partition
BOUNDARY_HIGH_DRAW = 0.999999


# ============================================================
# CONVERGENCE CHECKS
# ============================================================

CONVERGENCE_TRIALS = 100_000

# Max absolute gap between observed frequency and likelihood
CONVERGENCE_TOLERANCE = 0.01

DEFAULT_EXPORT_TRIALS = 10_000


# ============================================================
# ENVIRONMENT
# ============================================================

SEED_ENV_VAR = "WEIGHTED_SAMPLER_SEED"
EXPORT_DIR_ENV_VAR = "WEIGHTED_SAMPLER_EXPORT_DIR"

REPO_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_EXPORT_DIR = REPO_ROOT / "data" / "extracts" / "generated"


def seed_from_env() -> Optional[int]:
    """
    Seed for the shared generator, or None to use system entropy.
    """
    raw = os.environ.get(SEED_ENV_VAR, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise SettingsError(f"{SEED_ENV_VAR} must be an integer, got {raw!r}.") from None


def export_dir_from_env() -> Path:
    raw = os.environ.get(EXPORT_DIR_ENV_VAR, "").strip()
    return Path(raw) if raw else DEFAULT_EXPORT_DIR


# ============================================================
# VALIDATION
# ============================================================

def _validate_settings() -> None:
    if not 0.0 < PROBABILITY_TOLERANCE < 1.0:
        raise SettingsError("PROBABILITY_TOLERANCE must be in (0,1)")

    if not 0.0 <= BOUNDARY_HIGH_DRAW < 1.0:
        raise SettingsError("BOUNDARY_HIGH_DRAW must be in [0,1)")

    if CONVERGENCE_TRIALS <= 0 or DEFAULT_EXPORT_TRIALS <= 0:
        raise SettingsError("Trial counts must be positive")

    if not 0.0 < CONVERGENCE_TOLERANCE < 1.0:
        raise SettingsError("CONVERGENCE_TOLERANCE must be in (0,1)")


_validate_settings()
