"""
Personal record detection.

Peak power uses a running-sum sliding window over the power series; fastest
distance uses a two-pointer scan over cumulative distance. Power windows
treat one sample as one second; distance searches use the real timestamps.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Iterable

import numpy as np

from .normalize import rolling_mean
from .types import SessionRecord, PersonalBest, PBCategory, Sport, DateLike

logger = logging.getLogger(__name__)


POWER_WINDOWS = (5, 60, 300, 1200, 3600)                # seconds
RUNNING_DISTANCES = (1000, 5000, 10000, 21097, 42195)   # metres
SWIMMING_DISTANCES = (100, 400, 1000, 1500)             # metres

SESSION_WINDOW = 0

PB_SLOTS: Dict[Sport, List[Tuple[PBCategory, int]]] = {
    Sport.RUNNING: (
        [(PBCategory.FASTEST_DISTANCE, m) for m in RUNNING_DISTANCES]
        + [(PBCategory.LONGEST, SESSION_WINDOW)]
    ),
    Sport.CYCLING: (
        [(PBCategory.PEAK_POWER, s) for s in POWER_WINDOWS]
        + [(PBCategory.LONGEST, SESSION_WINDOW), (PBCategory.MOST_ELEVATION, SESSION_WINDOW)]
    ),
    Sport.SWIMMING: (
        [(PBCategory.FASTEST_DISTANCE, m) for m in SWIMMING_DISTANCES]
        + [(PBCategory.LONGEST, SESSION_WINDOW)]
    ),
}

# Fastest distance is a time, so lower wins; everything else higher wins
LOWER_IS_BETTER = frozenset({PBCategory.FASTEST_DISTANCE})

PBKey = Tuple[Sport, PBCategory, int]


@dataclass
class PBSessionInput:
    """One session's inputs for batch record computation."""
    session_id: str
    date: DateLike
    sport: Sport
    records: Sequence[SessionRecord] = field(default_factory=list)
    distance: Optional[float] = None
    elevation_gain: Optional[float] = None


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def is_better(category: PBCategory, candidate: float, existing: Optional[float]) -> bool:
    """Strict improvement check for a category; anything beats no record."""
    if existing is None:
        return True
    if PBCategory(category) in LOWER_IS_BETTER:
        return candidate < existing
    return candidate > existing


def find_peak_average(values: np.ndarray, window: int) -> Optional[float]:
    """Maximum windowed average, or None when the window exceeds the data."""
    averages = rolling_mean(values, window)
    if averages.size == 0:
        return None
    return _round1(float(np.max(averages)))


def extract_peak_power(
    records: Sequence[SessionRecord],
    windows: Iterable[int] = POWER_WINDOWS
) -> Dict[int, float]:
    """
    Peak average power for each window length.

    Args:
        records: Session samples (~1 Hz)
        windows: Window lengths in samples/seconds

    Returns:
        {window_seconds: watts}; windows longer than the data are omitted
    """
    power = np.array(
        [r.power for r in records
         if r.power is not None and math.isfinite(r.power) and r.power > 0],
        dtype=float,
    )

    peaks = {}
    for window in windows:
        peak = find_peak_average(power, window)
        if peak is not None and peak > 0:
            peaks[window] = peak

    return peaks


def extract_fastest_distances(
    records: Sequence[SessionRecord],
    targets: Iterable[float]
) -> Dict[float, float]:
    """
    Fastest elapsed time to cover each target distance.

    For each target a right pointer walks the cumulative distance; whenever
    the span from left to right covers the target the elapsed time is a
    candidate and left advances. Left never moves backwards.

    Args:
        records: Session samples with cumulative distance
        targets: Target distances in metres

    Returns:
        {metres: seconds}; targets the session never covers are omitted
    """
    with_distance = [r for r in records if r.distance is not None and r.distance > 0]
    results = {}
    if len(with_distance) < 2:
        return results

    distance = [r.distance for r in with_distance]
    timestamp = [r.timestamp for r in with_distance]
    n = len(with_distance)

    for target in targets:
        best_time = math.inf
        left = 0

        for right in range(1, n):
            while left < right and distance[right] - distance[left] >= target:
                elapsed = timestamp[right] - timestamp[left]
                if 0 < elapsed < best_time:
                    best_time = elapsed
                left += 1

        if best_time < math.inf:
            results[target] = best_time

    return results


def total_distance(records: Sequence[SessionRecord]) -> Optional[float]:
    """Final cumulative distance in the records."""
    distances = [r.distance for r in records if r.distance is not None]
    return distances[-1] if distances else None


def cumulative_ascent(records: Sequence[SessionRecord]) -> Optional[float]:
    """Sum of positive elevation changes between consecutive samples."""
    elevation = np.array([r.elevation for r in records if r.elevation is not None], dtype=float)
    if elevation.size < 2:
        return None
    deltas = np.diff(elevation)
    return float(np.sum(deltas[deltas > 0]))


def distance_targets(sport: Sport) -> Tuple[int, ...]:
    """Fastest-distance targets for a sport (none for cycling)."""
    if sport == Sport.RUNNING:
        return RUNNING_DISTANCES
    if sport == Sport.SWIMMING:
        return SWIMMING_DISTANCES
    return ()


def compute_session_peaks(
    sport: Sport,
    records: Sequence[SessionRecord],
    distance: Optional[float] = None,
    elevation_gain: Optional[float] = None
) -> List[Tuple[PBCategory, int, float]]:
    """
    All record candidates one session produces.

    Args:
        sport: Session sport
        records: Session samples
        distance: Session distance (m); final cumulative distance when omitted
        elevation_gain: Session ascent (m); derived from elevation when omitted

    Returns:
        List of (category, window, value)
    """
    sport = Sport(sport)
    peaks = []

    if sport == Sport.CYCLING:
        for seconds, watts in extract_peak_power(records).items():
            peaks.append((PBCategory.PEAK_POWER, seconds, watts))

    for metres, seconds in extract_fastest_distances(records, distance_targets(sport)).items():
        peaks.append((PBCategory.FASTEST_DISTANCE, metres, seconds))

    if distance is None:
        distance = total_distance(records)
    if distance is not None and distance > 0:
        peaks.append((PBCategory.LONGEST, SESSION_WINDOW, distance))

    if sport == Sport.CYCLING:
        if elevation_gain is None:
            elevation_gain = cumulative_ascent(records)
        if elevation_gain is not None and elevation_gain > 0:
            peaks.append((PBCategory.MOST_ELEVATION, SESSION_WINDOW, elevation_gain))

    return peaks


def _index_by_key(bests: Iterable[PersonalBest]) -> Dict[PBKey, PersonalBest]:
    return {pb.key: pb for pb in bests}


def detect_new_pbs(
    session_id: str,
    session_date: DateLike,
    sport: Sport,
    records: Sequence[SessionRecord],
    existing_bests: Sequence[PersonalBest],
    distance: Optional[float] = None,
    elevation_gain: Optional[float] = None
) -> List[PersonalBest]:
    """
    Records this session sets against the existing all-time bests.

    Each candidate is compared with the existing best for the same
    (sport, category, window) key; only strict improvements are returned.

    Returns:
        New PersonalBest entries (not yet merged)
    """
    sport = Sport(sport)
    existing = _index_by_key(existing_bests)
    new_pbs = []

    for category, window, value in compute_session_peaks(sport, records, distance, elevation_gain):
        current = existing.get((sport, category, window))
        if is_better(category, value, current.value if current else None):
            new_pbs.append(PersonalBest(
                sport=sport,
                category=category,
                window=window,
                value=value,
                session_id=session_id,
                date=session_date,
            ))

    if new_pbs:
        logger.info("Session %s set %d new personal best(s)", session_id, len(new_pbs))

    return new_pbs


def merge_pbs(
    existing: Sequence[PersonalBest],
    incoming: Sequence[PersonalBest]
) -> List[PersonalBest]:
    """
    Replace-by-key merge; keys not yet present are appended.

    Values are NOT compared: pass only entries already filtered by
    detect_new_pbs, or use upsert_pbs.
    """
    merged = list(existing)
    positions = {pb.key: i for i, pb in enumerate(merged)}

    for pb in incoming:
        if pb.key in positions:
            merged[positions[pb.key]] = pb
        else:
            positions[pb.key] = len(merged)
            merged.append(pb)

    return merged


def upsert_pbs(
    existing: Sequence[PersonalBest],
    candidates: Sequence[PersonalBest]
) -> List[PersonalBest]:
    """Merge candidates, replacing an existing record only when strictly better."""
    merged = list(existing)
    positions = {pb.key: i for i, pb in enumerate(merged)}

    for pb in candidates:
        if pb.key not in positions:
            positions[pb.key] = len(merged)
            merged.append(pb)
        elif is_better(pb.category, pb.value, merged[positions[pb.key]].value):
            merged[positions[pb.key]] = pb

    return merged


def compute_pbs_for_sessions(sessions: Sequence[PBSessionInput]) -> List[PersonalBest]:
    """
    Best-of-set records across an arbitrary session set.

    Independent of any stored records, e.g. for a date-range filtered view.
    """
    best_by_key: Dict[PBKey, PersonalBest] = {}

    for session in sessions:
        sport = Sport(session.sport)
        peaks = compute_session_peaks(sport, session.records,
                                      session.distance, session.elevation_gain)
        for category, window, value in peaks:
            key = (sport, category, window)
            current = best_by_key.get(key)
            if is_better(category, value, current.value if current else None):
                best_by_key[key] = PersonalBest(
                    sport=sport,
                    category=category,
                    window=window,
                    value=value,
                    session_id=session.session_id,
                    date=session.date,
                )

    return list(best_by_key.values())


def group_pbs_by_sport(pbs: Iterable[PersonalBest]) -> Dict[Sport, List[PersonalBest]]:
    """Group records by sport, preserving input order."""
    grouped: Dict[Sport, List[PersonalBest]] = {}
    for pb in pbs:
        grouped.setdefault(pb.sport, []).append(pb)
    return grouped
