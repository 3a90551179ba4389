"""
Lap analysis: per-lap pace, interval pairing, HR recovery and pacing drift.
"""

import math
from typing import List, Optional, Sequence

from .types import (
    SessionLap,
    LapAnalysis,
    IntervalPair,
    ProgressiveOverload,
    OverloadTrend,
)


ACTIVE_INTENSITY = 'active'
DRIFT_THRESHOLD_PERCENT = 3.0


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def _drift_percent(first: Optional[float], last: Optional[float]) -> Optional[float]:
    if first is None or last is None or first <= 0:
        return None
    return (last - first) / first * 100


def analyze_laps(laps: Sequence[SessionLap]) -> List[LapAnalysis]:
    """
    Derive pace and interval flags for each lap.

    A lap is an interval only when it is tagged 'active' and the session
    contains at least one lap with a different intensity tag.

    Args:
        laps: Device laps in recorded order

    Returns:
        One LapAnalysis per lap, same order
    """
    if not laps:
        return []

    has_rest_laps = any(
        lap.intensity is not None and lap.intensity != ACTIVE_INTENSITY
        for lap in laps
    )

    analyzed = []
    for lap in laps:
        moving_time = (lap.total_moving_time if lap.total_moving_time is not None
                       else lap.total_timer_time)
        pace = None
        if lap.distance > 0 and moving_time > 0:
            pace = moving_time / lap.distance * 1000

        analyzed.append(LapAnalysis(
            lap_index=lap.lap_index,
            pace_sec_per_km=pace,
            avg_hr=lap.avg_hr,
            avg_cadence=lap.avg_cadence,
            distance=lap.distance,
            duration=lap.total_timer_time,
            moving_time=moving_time,
            elevation_gain=lap.total_ascent or 0.0,
            intensity=lap.intensity or ACTIVE_INTENSITY,
            is_interval=has_rest_laps and lap.intensity == ACTIVE_INTENSITY,
        ))

    return analyzed


def detect_intervals(laps: Sequence[SessionLap]) -> List[IntervalPair]:
    """
    Pair each interval lap with the lap that follows it when that lap is a
    recovery (non-interval) lap.

    HR recovery is the active lap's max HR minus the recovery lap's min HR.

    Returns:
        One IntervalPair per interval lap; empty without interval structure
    """
    analyzed = analyze_laps(laps)
    if not any(lap.is_interval for lap in analyzed):
        return []

    pairs = []
    for i, active in enumerate(analyzed):
        if not active.is_interval:
            continue

        recovery = None
        recovery_lap = None
        if i + 1 < len(analyzed) and not analyzed[i + 1].is_interval:
            recovery = analyzed[i + 1]
            recovery_lap = laps[i + 1]

        hr_recovery = None
        if (laps[i].max_hr is not None and recovery_lap is not None
                and recovery_lap.min_hr is not None):
            hr_recovery = laps[i].max_hr - recovery_lap.min_hr

        pairs.append(IntervalPair(active=active, recovery=recovery, hr_recovery=hr_recovery))

    return pairs


def detect_progressive_overload(laps: Sequence[SessionLap]) -> ProgressiveOverload:
    """
    Pace and HR drift from the first to the last comparable lap.

    Comparable laps are the interval laps when any exist, otherwise all
    laps. Positive pace drift means slowing down:
        - Fading: drift > 3%
        - Building: drift < -3%
        - Stable: otherwise, or fewer than 2 comparable laps
    """
    analyzed = analyze_laps(laps)
    interval_laps = [lap for lap in analyzed if lap.is_interval]
    target = interval_laps if interval_laps else analyzed

    if len(target) < 2:
        return ProgressiveOverload(
            pace_drift_percent=None,
            hr_drift_percent=None,
            lap_count=len(target),
            trend=OverloadTrend.STABLE,
        )

    first, last = target[0], target[-1]
    pace_drift = _drift_percent(first.pace_sec_per_km, last.pace_sec_per_km)
    hr_drift = _drift_percent(first.avg_hr, last.avg_hr)

    trend = OverloadTrend.STABLE
    if pace_drift is not None and pace_drift > DRIFT_THRESHOLD_PERCENT:
        trend = OverloadTrend.FADING
    elif pace_drift is not None and pace_drift < -DRIFT_THRESHOLD_PERCENT:
        trend = OverloadTrend.BUILDING

    return ProgressiveOverload(
        pace_drift_percent=_round1(pace_drift) if pace_drift is not None else None,
        hr_drift_percent=_round1(hr_drift) if hr_drift is not None else None,
        lap_count=len(target),
        trend=trend,
    )
