"""
Aerobic efficiency metrics.

- Efficiency Factor (EF): output per heartbeat. Cycling uses NP / avg HR,
  running uses speed (m/s) * 100 / avg HR. Higher is better.
- Pw:Hr decoupling: drift of the power:HR ratio between the first and second
  half of a session. Under 5% indicates a solid aerobic base.
"""

import logging
import math
from datetime import timedelta
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from .types import SessionRecord, TrainingSession, Sport, DateLike

logger = logging.getLogger(__name__)


DECOUPLING_MIN_SAMPLES = 10
EF_TREND_DAYS = 28
EF_TREND_MIN_POINTS = 3


def _round(value: float, digits: int) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def calculate_ef(
    normalized_power: Optional[float],
    avg_speed: Optional[float],
    avg_hr: Optional[float],
    sport: Sport
) -> Optional[float]:
    """
    Efficiency Factor for a session.

    Args:
        normalized_power: NP in watts (cycling)
        avg_speed: Average speed in m/s (running)
        avg_hr: Average heart rate (bpm)
        sport: Session sport

    Returns:
        EF rounded to 2 decimals, or None when the inputs do not apply
    """
    if not avg_hr or avg_hr <= 0:
        return None

    sport = Sport(sport)
    if sport == Sport.CYCLING and normalized_power and normalized_power > 0:
        return _round(normalized_power / avg_hr, 2)
    if sport == Sport.RUNNING and avg_speed and avg_speed > 0:
        return _round(avg_speed * 100 / avg_hr, 2)
    return None


def calculate_decoupling(records: Sequence[SessionRecord]) -> Optional[float]:
    """
    Pw:Hr decoupling in percent.

    Uses samples with both power > 0 and hr > 0, split at the midpoint.
    Positive values mean power fell or HR rose in the second half.

    Returns:
        Decoupling rounded to 1 decimal, or None with fewer than 10 samples
    """
    pairs = np.array(
        [(r.power, r.hr) for r in records
         if r.power is not None and r.power > 0 and r.hr is not None and r.hr > 0],
        dtype=float,
    )
    if len(pairs) < DECOUPLING_MIN_SAMPLES:
        return None

    midpoint = len(pairs) // 2
    first_half, second_half = pairs[:midpoint], pairs[midpoint:]

    first_ratio = first_half[:, 0].mean() / first_half[:, 1].mean()
    second_ratio = second_half[:, 0].mean() / second_half[:, 1].mean()

    if first_ratio == 0:
        return None

    decoupling = (first_ratio - second_ratio) / first_ratio * 100
    return _round(float(decoupling), 1)


def get_ef_trend(
    sessions: Sequence[TrainingSession],
    sport: Sport,
    now: DateLike,
    days: int = EF_TREND_DAYS
) -> List[Tuple[DateLike, float]]:
    """
    Chronological EF points for one sport over a trailing window.

    Speed is taken as distance / duration. Planned sessions and sessions
    without a computable EF are skipped.

    Args:
        sessions: Session history, any order
        sport: Sport to trend
        now: Caller-supplied reference time
        days: Window length in days

    Returns:
        List of (session date, EF)
    """
    sport = Sport(sport)
    cutoff = pd.Timestamp(now) - timedelta(days=days)

    in_window = sorted(
        (s for s in sessions
         if s.sport == sport and not s.is_planned and pd.Timestamp(s.date) >= cutoff),
        key=lambda s: pd.Timestamp(s.date),
    )

    points = []
    for s in in_window:
        speed = s.distance / s.duration if s.distance > 0 and s.duration > 0 else None
        ef = calculate_ef(s.normalized_power, speed, s.avg_hr, sport)
        if ef is not None:
            points.append((s.date, ef))

    return points


def calculate_ef_trend_slope(points: Sequence[Tuple[DateLike, float]]) -> Optional[float]:
    """
    Least-squares EF change per day.

    Returns:
        Slope (EF units per day), or None with fewer than 3 points or when
        every point falls on the same instant
    """
    if len(points) < EF_TREND_MIN_POINTS:
        return None

    timestamps = pd.to_datetime([pd.Timestamp(d) for d, _ in points])
    day_offsets = (timestamps - timestamps[0]) / pd.Timedelta(days=1)
    x = np.asarray(day_offsets, dtype=float)
    y = np.array([ef for _, ef in points], dtype=float)

    if np.ptp(x) == 0:
        logger.debug("EF trend slope unavailable: all points share one date")
        return None

    result = stats.linregress(x, y)
    return float(result.slope)
