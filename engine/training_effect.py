"""
Per-session aerobic and anaerobic training effect (0-5 scale).

Per-sample Banister impulse is accumulated over the session and scaled by
current fitness (CTL), so fitter athletes need more stimulus for the same
score.
"""

import logging
import math
from typing import Optional, Sequence, Union

from .stress import banister_coefficients
from .types import SessionRecord, Gender, TrainingEffect, TrainingEffectLabel

logger = logging.getLogger(__name__)


ANAEROBIC_HRR_THRESHOLD = 0.9       # fraction of HR reserve
MAX_FITNESS_CTL = 200               # CTL at which the fitness scale saturates (2.0x)
AEROBIC_K = 1.0
AEROBIC_EXPONENT = 0.25
ANAEROBIC_REFERENCE_MIN = 6.0       # minutes at VO2max ...
ANAEROBIC_REFERENCE_SCORE = 2.0     # ... map to this score
MAX_TRAINING_EFFECT = 5.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def fitness_scale(ctl: float) -> float:
    """CTL 0 -> 1.0x, CTL 100 -> 1.5x, CTL 200+ -> 2.0x."""
    return 1 + _clamp(ctl, 0, MAX_FITNESS_CTL) / MAX_FITNESS_CTL


def calculate_training_effect(
    records: Sequence[SessionRecord],
    max_hr: float,
    rest_hr: float,
    gender: Union[str, Gender],
    ctl: float
) -> Optional[TrainingEffect]:
    """
    Accumulate per-sample impulse into aerobic/anaerobic training effect.

    Args:
        records: Session samples; only samples with hr contribute
        max_hr: Maximum heart rate (bpm)
        rest_hr: Resting heart rate (bpm)
        gender: Selects the Banister coefficients
        ctl: Current chronic training load

    Returns:
        TrainingEffect, or None without HR samples or when max_hr <= rest_hr
    """
    if max_hr <= rest_hr:
        return None

    hr_range = max_hr - rest_hr
    a, b = banister_coefficients(gender)

    aerobic_impulse = 0.0
    anaerobic_impulse = 0.0
    prev_timestamp = None
    has_hr = False

    for record in records:
        if record.hr is None:
            continue

        has_hr = True
        hrr = _clamp((record.hr - rest_hr) / hr_range, 0.0, 1.0)
        # First HR sample counts as one second
        if prev_timestamp is None:
            dt = 1 / 60
        else:
            dt = (record.timestamp - prev_timestamp) / 60
        prev_timestamp = record.timestamp

        if dt <= 0:
            continue

        aerobic_impulse += dt * hrr * a * math.exp(b * hrr)

        if hrr > ANAEROBIC_HRR_THRESHOLD:
            anaerobic_impulse += dt * (hrr - ANAEROBIC_HRR_THRESHOLD) / (1 - ANAEROBIC_HRR_THRESHOLD)

    if not has_hr:
        logger.debug("Training effect unavailable: no heart rate samples")
        return None

    scale = fitness_scale(ctl)

    aerobic = _clamp(
        AEROBIC_K * (aerobic_impulse / scale) ** AEROBIC_EXPONENT,
        0.0, MAX_TRAINING_EFFECT,
    )
    anaerobic = _clamp(
        anaerobic_impulse / (ANAEROBIC_REFERENCE_MIN * scale) * ANAEROBIC_REFERENCE_SCORE,
        0.0, MAX_TRAINING_EFFECT,
    )

    return TrainingEffect(aerobic=_round1(aerobic), anaerobic=_round1(anaerobic))


# Checked top-down, first match wins
TRAINING_EFFECT_BANDS = (
    (5.0, TrainingEffectLabel('Overreaching', 'red')),
    (4.0, TrainingEffectLabel('Highly Improving', 'orange')),
    (3.0, TrainingEffectLabel('Improving', 'amber')),
    (2.0, TrainingEffectLabel('Maintaining', 'green')),
    (1.0, TrainingEffectLabel('Minor', 'blue')),
)

NO_EFFECT = TrainingEffectLabel('No Effect', 'neutral')


def get_training_effect_label(te: float) -> TrainingEffectLabel:
    """Map a 0-5 training effect score to its display band."""
    for lower_bound, label in TRAINING_EFFECT_BANDS:
        if te >= lower_bound:
            return label
    return NO_EFFECT


def get_training_effect_summary(aerobic: float, anaerobic: float) -> str:
    """
    One-sentence interpretation of a session's combined training effect.

    Conditions are checked in priority order; the first match wins.
    """
    if aerobic < 1.0 and anaerobic < 1.0:
        return 'Too easy to stimulate adaptation'
    if aerobic >= 4.0 and anaerobic >= 4.0:
        return 'Extreme session - both aerobic and anaerobic systems pushed hard'
    if aerobic >= 3.0 and anaerobic < 2.0:
        return 'Steady aerobic effort - improved endurance base'
    if anaerobic >= 3.0 and aerobic < 2.0:
        return 'High-intensity session - anaerobic capacity stimulus'
    if aerobic >= 3.0 and anaerobic >= 2.0:
        return 'Mixed-intensity effort - both energy systems challenged'
    if aerobic >= 2.0 and anaerobic < 1.0:
        return 'Easy aerobic maintenance - good recovery day'
    if aerobic >= 2.0:
        return 'Moderate effort - maintaining fitness with some intensity'
    return 'Light effort - minor training stimulus'
