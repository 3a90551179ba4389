"""
Coaching classification: readiness, injury risk and load state.

Maps the latest DailyMetrics row into discrete, actionable categories.

Based on:
- Coggan: TSB form bands
- Gabbett (2016): ACWR injury risk thresholds
"""

import logging
from typing import Dict, Optional

from .types import (
    CoachingRecommendation,
    DailyMetrics,
    FormStatus,
    InjuryRisk,
    LoadState,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# THRESHOLDS
# ═══════════════════════════════════════════════════════════════════════════════

TSB_DETRAINING = 25         # above this: detraining
TSB_FRESH = 5               # at or above: fresh
TSB_NEUTRAL = -10           # at or above: neutral
TSB_OPTIMAL = -30           # at or above: optimal, below: overload

ACWR_UNDERTRAINING_THRESHOLD = 0.8
ACWR_MODERATE_THRESHOLD = 1.3
ACWR_HIGH_THRESHOLD = 1.5

# Days of history before ACWR is trusted
DATA_MATURITY_DAYS = 28


def get_form_status(tsb: float) -> FormStatus:
    """
    Classify Training Stress Balance.

    Bands (first match wins, boundaries belong to the lower band):
        - Detraining: > 25
        - Fresh: 5 to 25
        - Neutral: -10 to 5
        - Optimal: -30 to -10
        - Overload: < -30
    """
    if tsb > TSB_DETRAINING:
        return FormStatus.DETRAINING
    elif tsb >= TSB_FRESH:
        return FormStatus.FRESH
    elif tsb >= TSB_NEUTRAL:
        return FormStatus.NEUTRAL
    elif tsb >= TSB_OPTIMAL:
        return FormStatus.OPTIMAL
    else:
        return FormStatus.OVERLOAD


def get_injury_risk(acwr: float) -> InjuryRisk:
    """ACWR <= 1.3 low, <= 1.5 moderate, otherwise high."""
    if acwr <= ACWR_MODERATE_THRESHOLD:
        return InjuryRisk.LOW
    elif acwr <= ACWR_HIGH_THRESHOLD:
        return InjuryRisk.MODERATE
    else:
        return InjuryRisk.HIGH


def get_load_state(
    acwr: float,
    data_maturity_days: int,
    maturity_days: int = DATA_MATURITY_DAYS
) -> LoadState:
    """
    Classify the load state, gated on history length.

    Under maturity_days of history the ratio is not trusted at all.
    Otherwise:
        - High risk: ACWR > 1.5
        - Moderate risk: ACWR > 1.3
        - Undertraining: ACWR < 0.8
        - Sweet spot: 0.8 to 1.3
    """
    if data_maturity_days < maturity_days:
        return LoadState.IMMATURE
    if acwr > ACWR_HIGH_THRESHOLD:
        return LoadState.HIGH_RISK
    if acwr > ACWR_MODERATE_THRESHOLD:
        return LoadState.MODERATE_RISK
    if acwr < ACWR_UNDERTRAINING_THRESHOLD:
        return LoadState.UNDERTRAINING
    return LoadState.SWEET_SPOT


# ═══════════════════════════════════════════════════════════════════════════════
# MESSAGES
# ═══════════════════════════════════════════════════════════════════════════════

FORM_MESSAGES: Dict[FormStatus, str] = {
    FormStatus.DETRAINING: 'Detraining risk. Increase volume.',
    FormStatus.FRESH: 'Prime state. Ready to race.',
    FormStatus.NEUTRAL: 'Neutral zone. Maintain aerobic focus.',
    FormStatus.OPTIMAL: 'Productive overload. Keep pushing.',
    FormStatus.OVERLOAD: 'Deep fatigue. High risk. Rest recommended.',
}

_IMMATURE_PREFIX = ('Your fitness metrics are still stabilizing '
                    '(less than 4 weeks of data). ')

IMMATURE_MESSAGES: Dict[FormStatus, str] = {
    FormStatus.DETRAINING: _IMMATURE_PREFIX + (
        'Recent training looks light. Focus on consistency; the numbers '
        'become more reliable as your history grows.'),
    FormStatus.FRESH: _IMMATURE_PREFIX + (
        'Early readings say you are well rested. Keep training consistently.'),
    FormStatus.NEUTRAL: _IMMATURE_PREFIX + (
        'Your load looks balanced so far. Keep logging sessions.'),
    FormStatus.OPTIMAL: _IMMATURE_PREFIX + (
        'Early signs point to a solid training load. Stay consistent and '
        'monitor how you feel.'),
    FormStatus.OVERLOAD: _IMMATURE_PREFIX + (
        'Early readings show high fatigue for your short history. Consider '
        'an easy day; these numbers are preliminary.'),
}

UNDERTRAINING_MESSAGES: Dict[FormStatus, str] = {
    FormStatus.DETRAINING: (
        'Fitness is declining and recent load is well below your long-term '
        'average. You are at risk of deconditioning; ramp volume back up gradually.'),
    FormStatus.FRESH: (
        'You are rested, but recent load is well below your baseline. '
        'Sustained underloading erodes fitness; consider adding volume.'),
    FormStatus.NEUTRAL: (
        'Readiness is balanced, but weekly load has dropped below your chronic '
        'average. A moderate increase keeps deconditioning at bay.'),
    FormStatus.OPTIMAL: (
        'You trained hard recently, yet acute load is below your long-term '
        'average, typical after a sudden taper. Keep the reduction intentional.'),
    FormStatus.OVERLOAD: (
        'Fatigue is high despite low recent load relative to your history. '
        'Stress outside training may be adding up; recover before adding volume.'),
}

SWEET_SPOT_MESSAGES: Dict[FormStatus, str] = {
    FormStatus.DETRAINING: (
        'Fitness is starting to slip because training has been too light. '
        'You are fully recovered; increase volume gradually.'),
    FormStatus.FRESH: (
        'You are rested and fitness is high relative to fatigue. Ideal for '
        'racing or key workouts.'),
    FormStatus.NEUTRAL: (
        'Training load and recovery are balanced. Keep following your plan '
        'with a focus on aerobic consistency.'),
    FormStatus.OPTIMAL: (
        'Hard recent training and your body is adapting. Sleep and fuel well '
        'to support recovery.'),
    FormStatus.OVERLOAD: (
        'You are carrying significant fatigue. Take easy days or a full rest '
        'day before pushing hard again.'),
}

RISK_MESSAGES: Dict[FormStatus, Dict[InjuryRisk, str]] = {
    FormStatus.DETRAINING: {
        InjuryRisk.MODERATE: ('Fitness is declining and your ramp rate is elevated. '
                              'Return progressively instead of spiking load.'),
        InjuryRisk.HIGH: ('Fitness is declining and your recent load spike is in the '
                          'danger zone. Back off and rebuild over 2-3 weeks.'),
    },
    FormStatus.FRESH: {
        InjuryRisk.MODERATE: ('You are rested, but load has ramped faster than usual. '
                              'Avoid stacking another big increase this week.'),
        InjuryRisk.HIGH: ('You are rested, but load has spiked sharply and injury risk '
                          'is elevated. Scale back this week.'),
    },
    FormStatus.NEUTRAL: {
        InjuryRisk.MODERATE: ('Readiness is balanced, but the ramp rate is above the safe '
                              'zone. Hold steady to let your body catch up.'),
        InjuryRisk.HIGH: ('Readiness is balanced, but load increased dangerously fast. '
                          'Reduce volume or intensity for a few days.'),
    },
    FormStatus.OPTIMAL: {
        InjuryRisk.MODERATE: ('Productive phase with a moderately elevated ramp rate. '
                              'Keep pushing without adding another big increase.'),
        InjuryRisk.HIGH: ('High fatigue combined with a load spike in the danger zone. '
                          'Take a recovery day now.'),
    },
    FormStatus.OVERLOAD: {
        InjuryRisk.MODERATE: ('Deep fatigue with an elevated ramp rate. Easy days or rest '
                              'before resuming hard training.'),
        InjuryRisk.HIGH: ('Deep fatigue with a dangerous load spike, the highest injury '
                          'risk state. Rest until fatigue subsides.'),
    },
}

NO_DATA_MESSAGE = 'Not enough data yet. Upload sessions to get recommendations.'


def get_form_message(status: FormStatus) -> str:
    """Short headline for a form status."""
    return FORM_MESSAGES[FormStatus(status)]


def get_form_message_detailed(rec: CoachingRecommendation) -> str:
    """
    Narrative combining form status with the ACWR load state.

    Risk states use the recommendation's injury risk; a risk state whose
    injury risk is low falls back to the moderate message.
    """
    status = FormStatus(rec.status)
    state = LoadState(rec.load_state)

    if state == LoadState.IMMATURE:
        return IMMATURE_MESSAGES[status]
    if state == LoadState.UNDERTRAINING:
        return UNDERTRAINING_MESSAGES[status]
    if state == LoadState.SWEET_SPOT:
        return SWEET_SPOT_MESSAGES[status]

    risk = InjuryRisk(rec.injury_risk)
    if risk == InjuryRisk.LOW:
        risk = InjuryRisk.MODERATE
    return RISK_MESSAGES[status][risk]


def get_coaching_recommendation(
    metrics: Optional[DailyMetrics],
    history_days: int,
    maturity_days: int = DATA_MATURITY_DAYS
) -> CoachingRecommendation:
    """
    Build the readiness snapshot from the latest metrics row.

    Args:
        metrics: Latest DailyMetrics, or None without history
        history_days: Days of history behind the row (data maturity)
        maturity_days: History needed before the ACWR load state is trusted

    Returns:
        CoachingRecommendation (neutral placeholder without metrics)
    """
    if metrics is None:
        return CoachingRecommendation(
            status=FormStatus.NEUTRAL,
            message=NO_DATA_MESSAGE,
            injury_risk=InjuryRisk.LOW,
            acwr=0.0,
            tsb=0.0,
            data_maturity_days=history_days,
            load_state=LoadState.IMMATURE,
        )

    status = get_form_status(metrics.tsb)
    rec = CoachingRecommendation(
        status=status,
        message=get_form_message(status),
        injury_risk=get_injury_risk(metrics.acwr),
        acwr=metrics.acwr,
        tsb=metrics.tsb,
        data_maturity_days=history_days,
        load_state=get_load_state(metrics.acwr, history_days, maturity_days),
    )

    logger.debug("Coaching: status=%s risk=%s state=%s",
                 rec.status.value, rec.injury_risk.value, rec.load_state.value)

    return rec
