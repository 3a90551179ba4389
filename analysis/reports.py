"""
Report generation utilities for training analytics.

Generates plain-text session, training load and personal record reports,
plus CSV export of the daily load series.
"""

from typing import List, Optional, Sequence
from datetime import datetime

from engine.coaching import get_coaching_recommendation, get_form_message_detailed
from engine.efficiency import calculate_decoupling, calculate_ef
from engine.laps import detect_intervals, detect_progressive_overload
from engine.profile import AthleteProfile, LoadModelParams
from engine.records import group_pbs_by_sport
from engine.stress import compare_tss
from engine.training_effect import (
    calculate_training_effect,
    get_training_effect_label,
    get_training_effect_summary,
)
from engine.training_load import history_days, metrics_to_frame, weekly_load
from engine.types import (
    DailyMetrics,
    PersonalBest,
    PBCategory,
    SessionLap,
    SessionRecord,
    TrainingSession,
)


def format_duration(seconds: float) -> str:
    """Seconds as h:mm:ss (or m:ss under an hour)."""
    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_pace(sec_per_km: Optional[float]) -> str:
    """Pace as m:ss /km, '-' when unavailable."""
    if sec_per_km is None:
        return "-"
    return f"{format_duration(sec_per_km)} /km"


def format_pb_value(pb: PersonalBest) -> str:
    """Human-readable record value for its category."""
    if pb.category == PBCategory.PEAK_POWER:
        return f"{pb.value:.0f} W"
    if pb.category == PBCategory.FASTEST_DISTANCE:
        return format_duration(pb.value)
    if pb.category == PBCategory.LONGEST:
        return f"{pb.value / 1000:.2f} km"
    return f"{pb.value:.0f} m"


def format_pb_window(pb: PersonalBest) -> str:
    if pb.category == PBCategory.PEAK_POWER:
        return format_duration(pb.window)
    if pb.category == PBCategory.FASTEST_DISTANCE:
        return f"{pb.window / 1000:g} km" if pb.window >= 1000 else f"{pb.window} m"
    return "session"


def generate_session_report(
    session: TrainingSession,
    records: Sequence[SessionRecord],
    profile: AthleteProfile,
    laps: Optional[Sequence[SessionLap]] = None,
    ctl: float = 0.0
) -> str:
    """
    Generate a text report for one session.

    Args:
        session: Assembled session
        records: Raw samples of the session
        profile: Athlete thresholds
        laps: Device laps, optional
        ctl: Current chronic load, scales the training effect

    Returns:
        Formatted report string
    """
    report = f"""
{'='*70}
SESSION {session.id} - {session.sport.value.upper()}
{'='*70}
Date:                      {session.date}
Duration:                  {format_duration(session.duration):>10}
Distance:                  {session.distance / 1000:>10.2f} km
Stress:                    {session.tss:>10.1f} ({session.stress_method.value})
"""

    if session.avg_hr is not None:
        report += f"Avg HR:                    {session.avg_hr:>10.0f} bpm\n"
    if session.normalized_power is not None:
        report += f"Normalized power:          {session.normalized_power:>10.0f} W\n"
    if session.avg_pace is not None:
        report += f"Avg pace:                  {format_pace(session.avg_pace):>10}\n"

    comparison = compare_tss(session.device_tss, session.tss)
    if comparison is not None:
        report += (f"Device TSS:                {comparison.device_tss:>10.1f} "
                   f"({comparison.confidence.value} agreement)\n")
        if comparison.warning:
            report += f"  ! {comparison.warning}\n"

    effect = calculate_training_effect(records, profile.max_hr, profile.rest_hr,
                                       profile.gender, ctl)
    if effect is not None:
        report += f"""
TRAINING EFFECT
---------------
Aerobic:                   {effect.aerobic:>10.1f} ({get_training_effect_label(effect.aerobic).label})
Anaerobic:                 {effect.anaerobic:>10.1f} ({get_training_effect_label(effect.anaerobic).label})
{get_training_effect_summary(effect.aerobic, effect.anaerobic)}
"""

    speed = session.distance / session.duration if session.duration > 0 else None
    ef = calculate_ef(session.normalized_power, speed, session.avg_hr, session.sport)
    decoupling = calculate_decoupling(records)
    if ef is not None or decoupling is not None:
        report += "\nEFFICIENCY\n----------\n"
        if ef is not None:
            report += f"Efficiency factor:         {ef:>10.2f}\n"
        if decoupling is not None:
            report += f"Pw:Hr decoupling:          {decoupling:>9.1f}%\n"

    if laps:
        pairs = detect_intervals(laps)
        overload = detect_progressive_overload(laps)
        report += f"""
LAPS
----
Laps:                      {len(laps):>10d}
Intervals:                 {len(pairs):>10d}
Pacing trend:              {overload.trend.value:>10}
"""
        for pair in pairs:
            recovery = f"{pair.hr_recovery:.0f} bpm" if pair.hr_recovery is not None else "-"
            report += (f"  Lap {pair.active.lap_index:>2}: "
                       f"{format_pace(pair.active.pace_sec_per_km):>10}  "
                       f"HR recovery {recovery}\n")

    if session.sensor_warnings:
        report += "\nSENSOR WARNINGS\n---------------\n"
        for warning in session.sensor_warnings:
            report += f"  ! {warning}\n"

    report += "\n" + "=" * 70 + "\n"
    return report


def generate_load_report(
    metrics: Sequence[DailyMetrics],
    title: str = "Training Load Report",
    weeks: int = 6,
    params: Optional[LoadModelParams] = None
) -> str:
    """
    Generate a fitness/fatigue report from the daily series.

    Args:
        metrics: Daily series from compute_daily_metrics
        title: Report title
        weeks: Number of recent weeks in the weekly breakdown
        params: Load model settings; supplies the data maturity cutoff

    Returns:
        Formatted report string
    """
    current = metrics[-1] if metrics else None
    params = params or LoadModelParams()
    rec = get_coaching_recommendation(current, history_days(metrics), params.maturity_days)

    report = f"""
{'='*70}
{title}
{'='*70}
"""

    if current is None:
        report += rec.message + "\n" + "=" * 70 + "\n"
        return report

    report += f"""History:                   {history_days(metrics):>8d} days ({metrics[0].date} to {current.date})

CURRENT STATE
-------------
Fitness (CTL):             {current.ctl:>8.1f}
Fatigue (ATL):             {current.atl:>8.1f}
Form (TSB):                {current.tsb:>8.1f}
ACWR:                      {current.acwr:>8.2f}

COACHING
--------
Status:                    {rec.status.value:>8}
Injury risk:               {rec.injury_risk.value:>8}
Load state:                {rec.load_state.value:>8}
{rec.message}
{get_form_message_detailed(rec)}

WEEKLY LOAD
-----------
"""
    report += f"{'Week of':<12} {'TSS':>8}\n"
    report += "-" * 21 + "\n"
    for week_start, tss in weekly_load(metrics)[-weeks:]:
        report += f"{week_start.isoformat():<12} {tss:>8.1f}\n"

    report += "\n" + "=" * 70 + "\n"
    return report


def generate_pb_report(pbs: Sequence[PersonalBest], title: str = "Personal Records") -> str:
    """Generate a per-sport table of personal records."""
    report = f"""
{'='*70}
{title}
{'='*70}
"""
    if not pbs:
        report += "No personal records yet.\n"

    for sport, sport_pbs in group_pbs_by_sport(pbs).items():
        report += f"\n{sport.value.upper()}\n{'-' * len(sport.value)}\n"
        report += f"{'Category':<18} {'Window':>10} {'Value':>12} {'Session':>10}\n"
        for pb in sport_pbs:
            report += (f"{pb.category.value:<18} "
                       f"{format_pb_window(pb):>10} "
                       f"{format_pb_value(pb):>12} "
                       f"{pb.session_id:>10}\n")

    report += "\n" + "=" * 70 + "\n"
    return report


def generate_demo_header(generated: Optional[datetime] = None) -> str:
    if generated is None:
        generated = datetime.now()
    return f"Generated: {generated.strftime('%Y-%m-%d %H:%M:%S')}\n"


def export_metrics_csv(metrics: Sequence[DailyMetrics], filepath: str) -> None:
    """
    Export the daily load series to CSV.

    Args:
        metrics: Daily series
        filepath: Output file path
    """
    metrics_to_frame(metrics).to_csv(filepath, index_label='date')


def export_sessions_csv(sessions: List[TrainingSession], filepath: str) -> None:
    """Export session summaries to CSV (one row per session)."""
    import pandas as pd

    rows = [s.to_dict() for s in sessions]
    for row in rows:
        row['sensor_warnings'] = "; ".join(row['sensor_warnings'])
    pd.DataFrame(rows).to_csv(filepath, index=False)
