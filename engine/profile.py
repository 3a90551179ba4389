"""
Athlete profile and load-model parameters.

The profile carries the user-configured physiological thresholds that every
stress and effect calculation needs. Missing FTP silently disables the
power-based stress path; missing threshold pace only matters to zone features
that live outside this engine.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Tuple, Union

from .types import Gender


def parse_gender(value: Union[str, Gender]) -> Gender:
    """Coerce a gender string to ``Gender``."""
    if isinstance(value, Gender):
        return value
    try:
        return Gender(str(value).lower())
    except ValueError:
        raise ValueError(f"Gender must be 'male', 'female' or 'other', got '{value}'")


@dataclass
class AthleteProfile:
    """
    Per-athlete thresholds supplied by user configuration.

    Attributes:
        max_hr: Maximum heart rate (bpm)
        rest_hr: Resting heart rate (bpm)
        gender: Selects the Banister coefficients
        ftp: Functional Threshold Power (W), optional
        threshold_pace: Threshold running pace (sec/km), optional
    """
    max_hr: float
    rest_hr: float
    gender: Gender = Gender.MALE
    ftp: Optional[float] = None
    threshold_pace: Optional[float] = None

    def __post_init__(self):
        self.gender = parse_gender(self.gender)

    @property
    def hr_reserve(self) -> float:
        """Heart rate reserve (max - rest) in bpm."""
        return self.max_hr - self.rest_hr

    @property
    def has_power_threshold(self) -> bool:
        return self.ftp is not None and self.ftp > 0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['gender'] = self.gender.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'AthleteProfile':
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        """Validate profile constraints without raising."""
        issues = []

        if self.max_hr <= self.rest_hr:
            issues.append("max_hr must be greater than rest_hr")
        if self.rest_hr <= 0:
            issues.append("rest_hr must be positive")
        if self.ftp is not None and self.ftp <= 0:
            issues.append("ftp must be positive when set")
        if self.threshold_pace is not None and self.threshold_pace <= 0:
            issues.append("threshold_pace must be positive when set")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"


def default_profile() -> AthleteProfile:
    """Profile used before the athlete has configured their thresholds."""
    return AthleteProfile(max_hr=203, rest_hr=44, gender=Gender.MALE, ftp=305)


@dataclass
class LoadModelParams:
    """
    Tunable constants for the fitness/fatigue model.

    Time constants are in days; ``alpha`` converts them into the EWMA
    smoothing factor 2 / (days + 1).
    """

    ctl_days: int = 42          # Chronic load (fitness) time constant
    atl_days: int = 7           # Acute load (fatigue) time constant
    maturity_days: int = 28     # History needed before ACWR is trusted

    @staticmethod
    def alpha(days: int) -> float:
        return 2.0 / (days + 1.0)

    @property
    def ctl_alpha(self) -> float:
        return self.alpha(self.ctl_days)

    @property
    def atl_alpha(self) -> float:
        return self.alpha(self.atl_days)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'LoadModelParams':
        return cls(**d)

    def validate(self) -> Tuple[bool, str]:
        issues = []

        if not (0 < self.atl_days < self.ctl_days):
            issues.append("Time constants must satisfy 0 < atl_days < ctl_days")
        if self.maturity_days < 0:
            issues.append("maturity_days must be non-negative")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"
