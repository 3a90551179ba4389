"""
Session stress scoring: TSS (power) and TRIMP (heart rate).

Based on:
- Banister (1991): TRIMP formula
- Coggan & Allen (2010): Training Stress Score

TRIMP is normalized so a one-hour threshold effort lands near 100, putting
both methods on the same scale for the load model.
"""

import logging
import math
from typing import Optional, Sequence, Tuple, Union

from .normalize import calculate_normalized_power
from .profile import AthleteProfile, parse_gender
from .types import (
    SessionRecord,
    Gender,
    StressMethod,
    StressResult,
    TSSComparison,
    TSSConfidence,
)

logger = logging.getLogger(__name__)


# Gender-specific Banister coefficients (a, b) for Y = a * e^(b * deltaHR).
# Female b=1.67 is consistent across sources; a varies (0.64 vs 0.86), 0.86
# follows most contemporary implementations.
BANISTER = {
    Gender.MALE: (0.64, 1.92),
    Gender.FEMALE: (0.86, 1.67),
}

# Lactate threshold as a fraction of heart rate reserve; one hour here = 100.
TRIMP_THRESHOLD_HR_RATIO = 0.88

DURATION_FALLBACK_PER_HOUR = 30     # stress points per hour without sensors

TSS_HIGH_CONFIDENCE_PCT = 5.0
TSS_MODERATE_CONFIDENCE_PCT = 15.0


def banister_coefficients(gender: Union[str, Gender]) -> Tuple[float, float]:
    """Return (a, b); 'other' uses the male coefficients."""
    gender = parse_gender(gender)
    return BANISTER.get(gender, BANISTER[Gender.MALE])


def calculate_y_factor(delta_hr: float, gender: Union[str, Gender] = Gender.MALE) -> float:
    """
    Banister exponential intensity weighting.

    Males: Y = 0.64 * e^(1.92 * deltaHR)
    Females: Y = 0.86 * e^(1.67 * deltaHR)
    """
    a, b = banister_coefficients(gender)
    return a * math.exp(b * delta_hr)


def _round1(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def calculate_tss(
    records: Sequence[SessionRecord],
    duration_sec: float,
    ftp: Optional[float]
) -> Optional[Tuple[float, int]]:
    """
    Calculate Training Stress Score from power data.

    TSS = duration_sec * NP * IF / (FTP * 3600) * 100, with IF = NP / FTP

    Args:
        records: Session samples with power
        duration_sec: Session duration in seconds
        ftp: Functional Threshold Power (W)

    Returns:
        Tuple of (tss rounded to 0.1, normalized_power), or None when NP is
        unavailable or FTP is not positive
    """
    if ftp is None or ftp <= 0:
        return None

    np_watts = calculate_normalized_power(records)
    if np_watts is None:
        return None

    intensity_factor = np_watts / ftp
    tss = (duration_sec * np_watts * intensity_factor) / (ftp * 3600) * 100
    if not math.isfinite(tss):
        return None

    return _round1(tss), np_watts


def calculate_trimp(
    avg_hr: float,
    duration_sec: float,
    rest_hr: float,
    max_hr: float,
    gender: Union[str, Gender] = Gender.MALE
) -> float:
    """
    Calculate heart-rate based stress (Banister TRIMP) on the TSS scale.

    TRIMP = duration_min * deltaHR * Y(deltaHR), then divided by the TRIMP of
    a one-hour effort at TRIMP_THRESHOLD_HR_RATIO (x 1/100).

    Args:
        avg_hr: Average heart rate (bpm)
        duration_sec: Session duration in seconds
        rest_hr: Resting heart rate (bpm)
        max_hr: Maximum heart rate (bpm)
        gender: 'male', 'female' or 'other'

    Returns:
        Normalized TRIMP rounded to 0.1; 0 for physiologically invalid
        combinations (non-finite inputs, max <= rest, avg <= rest,
        avg > max)
    """
    if not all(math.isfinite(v) for v in (avg_hr, duration_sec, rest_hr, max_hr)):
        return 0.0
    if max_hr <= rest_hr or avg_hr <= rest_hr or avg_hr > max_hr:
        return 0.0

    duration_min = duration_sec / 60.0
    delta_hr = (avg_hr - rest_hr) / (max_hr - rest_hr)

    trimp = duration_min * delta_hr * calculate_y_factor(delta_hr, gender)

    norm_factor = (
        60 * TRIMP_THRESHOLD_HR_RATIO
        * calculate_y_factor(TRIMP_THRESHOLD_HR_RATIO, gender) / 100
    )

    return _round1(trimp / norm_factor)


def calculate_duration_stress(duration_sec: float) -> float:
    """Minimal stress estimate when neither power nor HR is usable."""
    if not math.isfinite(duration_sec) or duration_sec <= 0:
        return 0.0
    return float(math.floor(duration_sec / 3600 * DURATION_FALLBACK_PER_HOUR + 0.5))


def calculate_session_stress(
    records: Sequence[SessionRecord],
    duration_sec: float,
    avg_hr: Optional[float],
    profile: AthleteProfile
) -> StressResult:
    """
    Pick the best available stress method for a session.

    1. Power-based TSS when FTP is configured and NP is computable
    2. Heart-rate TRIMP when an average HR is present
    3. Duration fallback (30 points/hour), labelled distinctly

    Args:
        records: Session samples
        duration_sec: Session duration in seconds
        avg_hr: Average heart rate (bpm), optional
        profile: Athlete thresholds

    Returns:
        StressResult with the score and the method used
    """
    if profile.has_power_threshold:
        tss_result = calculate_tss(records, duration_sec, profile.ftp)
        if tss_result is not None:
            tss, np_watts = tss_result
            return StressResult(tss=tss, stress_method=StressMethod.POWER,
                                normalized_power=np_watts)
        logger.debug("FTP configured but NP unavailable, falling back to heart rate")

    if avg_hr is not None and avg_hr > 0:
        trimp = calculate_trimp(avg_hr, duration_sec, profile.rest_hr,
                                profile.max_hr, profile.gender)
        return StressResult(tss=trimp, stress_method=StressMethod.HEART_RATE)

    logger.debug("No power or heart rate data, using duration fallback")
    return StressResult(tss=calculate_duration_stress(duration_sec),
                        stress_method=StressMethod.DURATION)


def classify_tss_divergence(divergence_percent: float) -> TSSConfidence:
    """Confidence band: <=5% high, <=15% moderate, otherwise low."""
    if divergence_percent <= TSS_HIGH_CONFIDENCE_PCT:
        return TSSConfidence.HIGH
    elif divergence_percent <= TSS_MODERATE_CONFIDENCE_PCT:
        return TSSConfidence.MODERATE
    else:
        return TSSConfidence.LOW


def compare_tss(
    device_tss: Optional[float],
    computed_tss: float
) -> Optional[TSSComparison]:
    """
    Compare a device-reported TSS with the computed value.

    Returns:
        TSSComparison, or None when the device reported no TSS
    """
    if device_tss is None:
        return None

    delta = abs(device_tss - computed_tss)
    divergence_percent = (delta / device_tss) * 100 if device_tss > 0 else 0.0
    confidence = classify_tss_divergence(divergence_percent)

    warning = None
    if confidence == TSSConfidence.LOW:
        warning = (f"TSS diverges by {divergence_percent:.0f}% from device value - "
                   f"check FTP setting (device: {device_tss:g}, app: {computed_tss:g})")

    return TSSComparison(
        device_tss=device_tss,
        computed_tss=computed_tss,
        delta=delta,
        divergence_percent=divergence_percent,
        confidence=confidence,
        warning=warning,
    )
