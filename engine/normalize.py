"""
Normalized Power and Grade Adjusted Pace.

Based on:
- Coggan & Allen (2010): Normalized Power (30 s rolling 4th-power mean)
- Minetti et al. (2002): metabolic cost of running on gradients
"""

import logging
import math
from typing import Optional, Sequence, Union

import numpy as np

from .types import SessionRecord

logger = logging.getLogger(__name__)


NP_WINDOW = 30              # samples (~1 Hz => 30 s)
MAX_GRADIENT = 0.45         # clamp for the Minetti polynomial
FLAT_COST = 3.6             # J/kg/m on flat ground

# C(i) = 155.4i^5 - 30.4i^4 - 43.3i^3 + 46.3i^2 + 19.5i + 3.6
MINETTI_COEFFICIENTS = (155.4, -30.4, -43.3, 46.3, 19.5, FLAT_COST)


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def rolling_mean(values: np.ndarray, window: int) -> np.ndarray:
    """
    Trailing rolling mean using a running (cumulative) sum, O(n).

    Returns one value per full window, i.e. len(values) - window + 1 values.
    """
    if len(values) < window:
        return np.array([])
    csum = np.cumsum(np.insert(np.asarray(values, dtype=float), 0, 0.0))
    return (csum[window:] - csum[:-window]) / window


def calculate_normalized_power(records: Sequence[SessionRecord]) -> Optional[int]:
    """
    Calculate Normalized Power (NP) from per-second samples.

    1. Keep finite samples with power > 0
    2. 30-sample rolling average
    3. Raise each average to the 4th power and take the mean
    4. 4th root, rounded to the nearest watt

    Args:
        records: Session samples (assumed ~1 Hz)

    Returns:
        NP in watts, or None with fewer than 30 power samples
    """
    power = np.array(
        [r.power for r in records
         if r.power is not None and math.isfinite(r.power) and r.power > 0],
        dtype=float,
    )

    if power.size < NP_WINDOW:
        logger.debug("NP unavailable: %d power samples (< %d)", power.size, NP_WINDOW)
        return None

    rolling = rolling_mean(power, NP_WINDOW)
    fourth_power_mean = np.mean(rolling ** 4)

    return _round_half_up(fourth_power_mean ** 0.25)


def grade_adjusted_pace_factor(
    gradient: Union[float, np.ndarray]
) -> Union[float, np.ndarray]:
    """
    Metabolic cost of running at a gradient relative to flat ground.

    Args:
        gradient: Gradient as a fraction (0.05 = 5%), scalar or array

    Returns:
        Dimensionless factor, 1.0 on flat ground
    """
    i = np.clip(gradient, -MAX_GRADIENT, MAX_GRADIENT)
    factor = np.polyval(MINETTI_COEFFICIENTS, i) / FLAT_COST
    if np.ndim(factor) == 0:
        return float(factor)
    return factor


def calculate_gap(records: Sequence[SessionRecord]) -> Optional[float]:
    """
    Calculate Grade Adjusted Pace (GAP) in seconds per kilometre.

    A sample is usable when it has speed > 0, a cumulative distance and
    either a grade or an elevation. Each segment between consecutive usable
    samples is weighted by the grade factor; segments with no forward
    distance are skipped. The native grade field is preferred and the
    elevation delta over distance is the fallback.

    Returns:
        GAP (sec/km), or None with fewer than 2 usable samples or no distance
    """
    valid = [
        r for r in records
        if r.speed is not None and r.speed > 0
        and r.distance is not None
        and (r.grade is not None or r.elevation is not None)
    ]

    if len(valid) < 2:
        logger.debug("GAP unavailable: %d usable samples", len(valid))
        return None

    t = np.array([r.timestamp for r in valid], dtype=float)
    d = np.array([r.distance for r in valid], dtype=float)
    elev = np.array([r.elevation if r.elevation is not None else 0.0 for r in valid], dtype=float)
    grade = np.array([r.grade if r.grade is not None else np.nan for r in valid], dtype=float)

    dx = np.diff(d)
    dt = np.diff(t)
    moving = dx > 0

    if not np.any(moving):
        return None

    dx = dx[moving]
    dt = dt[moving]
    native = grade[1:][moving]
    elevation_gradient = np.diff(elev)[moving] / dx
    gradient = np.where(np.isnan(native), elevation_gradient, native / 100.0)

    adjusted_time = float(np.sum(dt * grade_adjusted_pace_factor(gradient)))
    total_distance = float(np.sum(dx))

    return adjusted_time / total_distance * 1000.0
