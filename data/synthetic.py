"""
Synthetic session data generation for tests and the demo CLI.

Generates realistic 1 Hz sample streams with:
- Oscillating power/speed around a base effort
- Upward heart rate drift (cardiac drift)
- Cumulative distance and gently rolling elevation
- Optional seeded noise for day-to-day variance
- Multi-week training histories assembled into TrainingSessions
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional
import numpy as np

from engine.profile import AthleteProfile, default_profile
from engine.session import build_training_session
from engine.types import (
    SessionRecord,
    SessionLap,
    SessionSummary,
    TrainingSession,
    Sport,
)


def _noise(count: int, scale: float) -> np.ndarray:
    """Gaussian noise, or zeros when scale is 0 (keeps output deterministic)."""
    if scale <= 0:
        return np.zeros(count)
    return np.random.normal(0, scale, count)


def _to_records(
    hr: np.ndarray,
    speed: np.ndarray,
    power: Optional[np.ndarray] = None,
    cadence: Optional[np.ndarray] = None,
    elevation: Optional[np.ndarray] = None,
) -> List[SessionRecord]:
    # 1 record = 1 second
    distance = np.cumsum(speed)
    records = []
    for i in range(len(speed)):
        records.append(SessionRecord(
            timestamp=float(i),
            hr=float(hr[i]),
            power=float(power[i]) if power is not None else None,
            cadence=float(cadence[i]) if cadence is not None else None,
            speed=float(speed[i]),
            distance=float(distance[i]),
            elevation=float(elevation[i]) if elevation is not None else None,
        ))
    return records


# ═══════════════════════════════════════════════════════════════════════════════
# SAMPLE STREAMS
# ═══════════════════════════════════════════════════════════════════════════════

def make_cycling_records(
    count: int = 3600,
    base_power: float = 200,
    base_hr: float = 140,
    noise: float = 0.0,
    seed: Optional[int] = None
) -> List[SessionRecord]:
    """
    Generate a cycling sample stream.

    Power oscillates as base_power + 40*sin(0.05 i); HR drifts up 20 bpm over
    the session; speed is ~8 m/s (28-32 km/h).

    Args:
        count: Number of 1 Hz samples
        base_power: Mean power (W)
        base_hr: Starting heart rate (bpm)
        noise: Std dev of Gaussian power noise (W), 0 for none
        seed: Random seed for reproducibility

    Returns:
        List of SessionRecord
    """
    if seed is not None:
        np.random.seed(seed)

    i = np.arange(count)
    power = np.maximum(base_power + 40 * np.sin(i * 0.05) + _noise(count, noise), 0)
    hr = base_hr + (i / max(count, 1)) * 20
    speed = 8 + np.sin(i * 0.02)
    cadence = 85 + 5 * np.sin(i * 0.03)
    elevation = 200 + 5 * np.sin(i * 0.005)

    return _to_records(hr, speed, power=power, cadence=cadence, elevation=elevation)


def make_running_records(
    count: int = 3600,
    base_speed: float = 3.5,
    base_hr: float = 145,
    noise: float = 0.0,
    seed: Optional[int] = None
) -> List[SessionRecord]:
    """
    Generate a running sample stream.

    Speed oscillates between base_speed - 0.5 and base_speed + 0.5 m/s and
    HR drifts up 15 bpm over the session.
    """
    if seed is not None:
        np.random.seed(seed)

    i = np.arange(count)
    speed = np.maximum(base_speed + 0.5 * np.sin(i * 0.04) + _noise(count, noise), 0.1)
    hr = base_hr + (i / max(count, 1)) * 15
    elevation = 100 + 2 * np.sin(i * 0.01)

    return _to_records(hr, speed, elevation=elevation)


def make_swimming_records(
    count: int = 1800,
    base_speed: float = 1.5,
    base_hr: float = 135,
    noise: float = 0.0,
    seed: Optional[int] = None
) -> List[SessionRecord]:
    """Generate a pool swimming sample stream (~1.5 m/s, no elevation)."""
    if seed is not None:
        np.random.seed(seed)

    i = np.arange(count)
    speed = np.maximum(base_speed + 0.2 * np.sin(i * 0.06) + _noise(count, noise), 0.1)
    hr = base_hr + (i / max(count, 1)) * 10

    return _to_records(hr, speed)


def make_interval_laps(
    intervals: int = 4,
    work_sec: float = 240,
    rest_sec: float = 120,
    work_speed: float = 4.5,
    rest_speed: float = 2.0,
    fade: float = 0.0,
    work_hr: float = 170,
    rest_hr: float = 130
) -> List[SessionLap]:
    """
    Generate an alternating work/recovery lap structure.

    Args:
        intervals: Number of work laps (each followed by a recovery lap)
        work_sec: Work lap duration (s)
        rest_sec: Recovery lap duration (s)
        work_speed: First work lap speed (m/s)
        rest_speed: Recovery speed (m/s)
        fade: Fractional speed loss per work lap (0.02 = 2% slower each rep)
        work_hr: Work lap average HR (bpm)
        rest_hr: Recovery lap average HR (bpm)

    Returns:
        List of SessionLap, work and recovery interleaved
    """
    laps = []
    t = 0.0

    for rep in range(intervals):
        speed = work_speed * (1 - fade * rep)
        for is_work in (True, False):
            duration = work_sec if is_work else rest_sec
            lap_speed = speed if is_work else rest_speed
            avg_hr = work_hr + rep * 2 if is_work else rest_hr
            laps.append(SessionLap(
                lap_index=len(laps),
                start_time=t,
                end_time=t + duration,
                total_elapsed_time=duration,
                total_timer_time=duration,
                total_moving_time=duration,
                distance=lap_speed * duration,
                avg_speed=lap_speed,
                avg_hr=avg_hr,
                min_hr=avg_hr - 10,
                max_hr=avg_hr + 8,
                intensity='active' if is_work else 'rest',
                repetition_num=rep + 1,
            ))
            t += duration

    return laps


# ═══════════════════════════════════════════════════════════════════════════════
# TRAINING HISTORY
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class SyntheticSession:
    """A generated session with the raw data it was built from."""
    session: TrainingSession
    records: List[SessionRecord]
    laps: List[SessionLap] = field(default_factory=list)


# Weekday -> sport; missing weekdays are rest days
WEEKLY_PATTERN = {
    1: Sport.RUNNING,     # Tue: intervals
    2: Sport.CYCLING,     # Wed
    3: Sport.SWIMMING,    # Thu
    5: Sport.CYCLING,     # Sat: long ride
    6: Sport.RUNNING,     # Sun: long run
}

INTERVAL_REPS = 4


def _summary_from_records(records: List[SessionRecord]) -> SessionSummary:
    hr = np.array([r.hr for r in records])
    speed = np.array([r.speed for r in records])
    return SessionSummary(
        duration=float(len(records)),
        avg_hr=float(np.round(hr.mean())),
        max_hr=float(hr.max()),
        avg_speed=float(speed.mean()),
    )


def generate_session(
    sport: Sport,
    session_date: datetime,
    session_id: str,
    profile: AthleteProfile,
    minutes: float = 60,
    intensity: float = 1.0,
    noise: float = 0.0,
    with_laps: bool = False
) -> SyntheticSession:
    """
    Generate one session and assemble it into a TrainingSession.

    Args:
        sport: Session sport
        session_date: Session start
        session_id: Identifier
        profile: Athlete thresholds used for stress scoring
        minutes: Session length
        intensity: Effort multiplier (1.0 = typical endurance effort)
        noise: Sample noise scale
        with_laps: Attach interval laps covering the session (running)
    """
    count = int(minutes * 60)

    if sport == Sport.CYCLING:
        records = make_cycling_records(count, base_power=200 * intensity,
                                       base_hr=130 + 15 * intensity, noise=noise * 10)
    elif sport == Sport.RUNNING:
        records = make_running_records(count, base_speed=3.2 * intensity,
                                       base_hr=135 + 15 * intensity, noise=noise * 0.2)
    else:
        records = make_swimming_records(count, base_speed=1.4 * intensity,
                                        base_hr=125 + 10 * intensity, noise=noise * 0.1)

    laps = []
    if with_laps:
        # Work:recovery 2:1, reps spanning the whole session
        rep_sec = count / INTERVAL_REPS
        laps = make_interval_laps(intervals=INTERVAL_REPS, work_sec=rep_sec * 2 / 3,
                                  rest_sec=rep_sec / 3, fade=0.02)
    summary = _summary_from_records(records)

    session = build_training_session(session_id, sport, session_date, records,
                                     summary, profile, laps=laps)
    return SyntheticSession(session=session, records=records, laps=laps)


def generate_training_history(
    start: date,
    weeks: int = 8,
    profile: Optional[AthleteProfile] = None,
    build_rate: float = 0.03,
    seed: Optional[int] = None
) -> List[SyntheticSession]:
    """
    Generate a multi-sport training history following WEEKLY_PATTERN.

    Effort ramps by ``build_rate`` per week with random session-to-session
    variance; the weekend sessions are longer.

    Args:
        start: First day of the history
        weeks: Number of weeks
        profile: Athlete thresholds (default profile when omitted)
        build_rate: Weekly intensity increase
        seed: Random seed for reproducibility

    Returns:
        Sessions in chronological order
    """
    if seed is not None:
        np.random.seed(seed)
    if profile is None:
        profile = default_profile()

    history = []
    for day in range(weeks * 7):
        current = start + timedelta(days=day)
        sport = WEEKLY_PATTERN.get(current.weekday())
        if sport is None:
            continue

        week = day // 7
        intensity = (1 + build_rate * week) * np.random.uniform(0.95, 1.05)
        minutes = 90 if current.weekday() >= 5 else 45
        if sport == Sport.SWIMMING:
            minutes = 30

        session_date = datetime(current.year, current.month, current.day, 7, 0)
        history.append(generate_session(
            sport,
            session_date,
            session_id=f"s{day:03d}",
            profile=profile,
            minutes=minutes,
            intensity=float(intensity),
            noise=1.0,
            with_laps=(current.weekday() == 1),
        ))

    return history
