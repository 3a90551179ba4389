"""
Sensor validation: advisory warnings for physiologically impossible data.

Validation never blocks processing and never mutates the records. A rule only
fires when more than SUSTAINED_ERROR_THRESHOLD samples are out of range, so
transient glitches do not produce warnings.
"""

import logging
from typing import List, Sequence, Dict

import numpy as np

from .types import SessionRecord, SensorWarning, Sport

logger = logging.getLogger(__name__)


MAX_VALID_HR = 230              # bpm
MAX_VALID_POWER = 2500          # W
SUSTAINED_ERROR_THRESHOLD = 10  # samples

MAX_SPEED_KMH: Dict[Sport, float] = {
    Sport.CYCLING: 80,
    Sport.RUNNING: 25,
    Sport.SWIMMING: 15,
}


def _field_values(records: Sequence[SessionRecord], name: str) -> np.ndarray:
    return np.array(
        [getattr(r, name) for r in records if getattr(r, name) is not None],
        dtype=float,
    )


def validate_records(
    records: Sequence[SessionRecord],
    sport: Sport
) -> List[SensorWarning]:
    """
    Check a session's samples for sustained sensor anomalies.

    Args:
        records: Session samples
        sport: Sport, selects the speed ceiling

    Returns:
        List of warnings, empty when the data looks plausible
    """
    warnings: List[SensorWarning] = []

    hr = _field_values(records, 'hr')
    power = _field_values(records, 'power')
    speed = _field_values(records, 'speed')

    if hr.size > 0:
        high_hr = int(np.sum(hr > MAX_VALID_HR))
        if high_hr > SUSTAINED_ERROR_THRESHOLD:
            warnings.append(SensorWarning(
                field='hr',
                message=(f"Heart rate exceeded {MAX_VALID_HR} bpm in {high_hr} records "
                         f"- likely sensor error"),
            ))

        if hr.size > SUSTAINED_ERROR_THRESHOLD and np.all(hr == 0):
            warnings.append(SensorWarning(
                field='hr',
                message='Heart rate is zero for entire session - sensor not connected',
            ))

    if power.size > 0:
        high_power = int(np.sum(power > MAX_VALID_POWER))
        if high_power > SUSTAINED_ERROR_THRESHOLD:
            warnings.append(SensorWarning(
                field='power',
                message=(f"Power exceeded {MAX_VALID_POWER}W in {high_power} records "
                         f"- likely sensor error"),
            ))

    if speed.size > 0:
        ceiling = MAX_SPEED_KMH[Sport(sport)]
        high_speed = int(np.sum(speed * 3.6 > ceiling))
        if high_speed > SUSTAINED_ERROR_THRESHOLD:
            warnings.append(SensorWarning(
                field='speed',
                message=(f"Speed exceeded {ceiling:g} km/h in {high_speed} records "
                         f"- likely sensor error"),
            ))

    if warnings:
        logger.debug("Sensor validation produced %d warning(s)", len(warnings))

    return warnings


def filter_valid_power(records: Sequence[SessionRecord]) -> List[SessionRecord]:
    """Keep only samples with 0 < power <= MAX_VALID_POWER."""
    return [
        r for r in records
        if r.power is not None and 0 < r.power <= MAX_VALID_POWER
    ]
