"""
Assemble a TrainingSession from decoded samples and a partial device summary.

Device summary values are used where the device is authoritative (duration,
heart rate, ascent, device TSS). Power and cadence are re-derived from the
raw samples so that sensor dropouts recorded as 0 do not drag the averages
down.
"""

import logging
from dataclasses import replace
from typing import Optional, Sequence

import numpy as np

from .profile import AthleteProfile
from .stress import calculate_session_stress
from .types import (
    SessionRecord,
    SessionLap,
    SessionSummary,
    TrainingSession,
    Sport,
    DateLike,
)
from .validation import validate_records

logger = logging.getLogger(__name__)


def _positive_values(records: Sequence[SessionRecord], name: str) -> np.ndarray:
    values = (getattr(r, name) for r in records)
    return np.array([v for v in values if v is not None and v > 0], dtype=float)


def derive_distance(records: Sequence[SessionRecord]) -> float:
    """Last positive cumulative distance, 0 when none was recorded."""
    for record in reversed(records):
        if record.distance is not None and record.distance > 0:
            return float(record.distance)
    return 0.0


def derive_average(records: Sequence[SessionRecord], name: str) -> Optional[float]:
    """Rounded mean of the positive samples of a field."""
    values = _positive_values(records, name)
    if values.size == 0:
        return None
    return float(np.floor(values.mean() + 0.5))


def derive_max(records: Sequence[SessionRecord], name: str) -> Optional[float]:
    """Maximum positive sample of a field."""
    values = _positive_values(records, name)
    if values.size == 0:
        return None
    return float(values.max())


def derive_moving_time(laps: Optional[Sequence[SessionLap]]) -> Optional[float]:
    """Sum of lap moving time, falling back to timer time per lap."""
    if not laps:
        return None
    return float(sum(
        lap.total_moving_time if lap.total_moving_time is not None else lap.total_timer_time
        for lap in laps
    ))


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def build_training_session(
    session_id: str,
    sport: Sport,
    date: DateLike,
    records: Sequence[SessionRecord],
    summary: SessionSummary,
    profile: AthleteProfile,
    laps: Optional[Sequence[SessionLap]] = None,
    name: Optional[str] = None
) -> TrainingSession:
    """
    Build the session summary that load tracking and presentation consume.

    FTP is only offered to the stress scorer when the session actually
    recorded power, so an FTP-configured athlete's power-less runs fall
    through to heart rate.

    Args:
        session_id: Identifier assigned by the caller
        sport: Session sport
        date: Session start
        records: Decoded samples (may be empty)
        summary: Partial device summary
        profile: Athlete thresholds
        laps: Device laps, optional
        name: Display name, optional

    Returns:
        TrainingSession
    """
    sport = Sport(sport)

    warnings = [w.message for w in validate_records(records, sport)]
    for message in warnings:
        logger.warning("Session %s: %s", session_id, message)

    has_power = any(r.power is not None and r.power > 0 for r in records)
    stress_profile = profile if has_power else replace(profile, ftp=None)

    avg_hr = _first_present(summary.avg_hr, derive_average(records, 'hr'))
    stress = calculate_session_stress(records, summary.duration, avg_hr, stress_profile)

    avg_speed = summary.avg_speed
    avg_pace = None
    if sport == Sport.RUNNING and avg_speed and avg_speed > 0:
        avg_pace = 1000 / avg_speed

    session = TrainingSession(
        id=session_id,
        sport=sport,
        date=date,
        duration=summary.duration,
        distance=derive_distance(records),
        tss=stress.tss,
        stress_method=stress.stress_method,
        name=name,
        avg_hr=avg_hr,
        max_hr=_first_present(summary.max_hr, derive_max(records, 'hr')),
        avg_power=_first_present(derive_average(records, 'power'), summary.avg_power),
        max_power=_first_present(derive_max(records, 'power'), summary.max_power),
        normalized_power=_first_present(stress.normalized_power, summary.normalized_power),
        avg_cadence=_first_present(derive_average(records, 'cadence'), summary.avg_cadence),
        avg_speed=avg_speed,
        max_speed=_first_present(summary.max_speed, derive_max(records, 'speed')),
        avg_pace=avg_pace,
        elevation_gain=summary.elevation_gain,
        moving_time=derive_moving_time(laps),
        device_tss=summary.device_tss,
        sensor_warnings=warnings,
        is_planned=False,
        has_detailed_records=len(records) > 0,
    )

    logger.info("Built session %s: %s, %.1f %s", session_id, sport.value,
                session.tss, session.stress_method.value)

    return session
