"""
Data model for the training analytics engine.

Plain dataclasses shared by every engine module. The engine only reads these
values and always returns fresh instances; nothing here holds behaviour beyond
small derived properties and dict conversion for the persistence and
presentation layers.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Tuple, Union


DateLike = Union[date, datetime]


class Sport(str, Enum):
    """Supported endurance sports."""
    RUNNING = "running"
    CYCLING = "cycling"
    SWIMMING = "swimming"


class Gender(str, Enum):
    """Athlete gender, used to pick Banister coefficients."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class StressMethod(str, Enum):
    """How a session's stress score was derived."""
    POWER = "power-based"
    HEART_RATE = "heart-rate-based"
    DURATION = "duration-fallback"


class FormStatus(str, Enum):
    """Readiness classification from TSB."""
    DETRAINING = "detraining"
    FRESH = "fresh"
    NEUTRAL = "neutral"
    OPTIMAL = "optimal"
    OVERLOAD = "overload"


class InjuryRisk(str, Enum):
    """Injury risk classification from ACWR."""
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class LoadState(str, Enum):
    """Load state from ACWR, gated on history length."""
    IMMATURE = "immature"
    HIGH_RISK = "high-risk"
    MODERATE_RISK = "moderate-risk"
    UNDERTRAINING = "undertraining"
    SWEET_SPOT = "sweet-spot"


class PBCategory(str, Enum):
    """Personal best categories."""
    PEAK_POWER = "peak-power"
    FASTEST_DISTANCE = "fastest-distance"
    LONGEST = "longest"
    MOST_ELEVATION = "most-elevation"


class TSSConfidence(str, Enum):
    """Agreement band between device-reported and computed TSS."""
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


class OverloadTrend(str, Enum):
    """Pace trend across comparable laps."""
    STABLE = "stable"
    FADING = "fading"
    BUILDING = "building"


# ═══════════════════════════════════════════════════════════════════════════════
# RAW INPUTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class SessionRecord:
    """
    One (nominally 1 Hz) sensor sample.

    timestamp is seconds elapsed since session start. distance is cumulative
    metres and grade is a FIT-style percentage (5 = 5%).
    """
    timestamp: float
    hr: Optional[float] = None
    power: Optional[float] = None
    cadence: Optional[float] = None
    speed: Optional[float] = None       # m/s
    distance: Optional[float] = None    # cumulative metres
    elevation: Optional[float] = None   # metres
    grade: Optional[float] = None       # percent

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SessionLap:
    """A device-recorded lap."""
    lap_index: int
    start_time: float
    end_time: float
    total_elapsed_time: float
    total_timer_time: float
    distance: float
    avg_speed: float = 0.0
    total_moving_time: Optional[float] = None
    max_speed: Optional[float] = None
    total_ascent: Optional[float] = None
    avg_hr: Optional[float] = None
    min_hr: Optional[float] = None
    max_hr: Optional[float] = None
    avg_cadence: Optional[float] = None
    max_cadence: Optional[float] = None
    intensity: Optional[str] = None     # 'active', 'rest', 'warmup', ...
    repetition_num: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SessionSummary:
    """
    Partial session summary as decoded from the activity file.

    Every field is optional; the session builder falls back to values
    derived from the raw records wherever the device left a gap.
    """
    duration: float = 0.0               # timer time, seconds
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    avg_power: Optional[float] = None
    max_power: Optional[float] = None
    normalized_power: Optional[float] = None
    avg_cadence: Optional[float] = None
    avg_speed: Optional[float] = None
    max_speed: Optional[float] = None
    elevation_gain: Optional[float] = None
    device_tss: Optional[float] = None


# ═══════════════════════════════════════════════════════════════════════════════
# DERIVED OUTPUTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class SensorWarning:
    """Advisory warning for a sustained implausible sensor reading."""
    field: str
    message: str


@dataclass
class TrainingSession:
    """
    Aggregate summary of one imported activity.

    Immutable after creation except for the user-editable ``name``.
    """
    id: str
    sport: Sport
    date: DateLike
    duration: float                     # seconds
    distance: float                     # metres
    tss: float
    stress_method: StressMethod
    name: Optional[str] = None
    avg_hr: Optional[float] = None
    max_hr: Optional[float] = None
    avg_power: Optional[float] = None
    max_power: Optional[float] = None
    normalized_power: Optional[float] = None
    avg_cadence: Optional[float] = None
    avg_speed: Optional[float] = None
    max_speed: Optional[float] = None
    avg_pace: Optional[float] = None    # sec/km, running only
    elevation_gain: Optional[float] = None
    moving_time: Optional[float] = None
    device_tss: Optional[float] = None
    sensor_warnings: List[str] = field(default_factory=list)
    is_planned: bool = False
    has_detailed_records: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['sport'] = self.sport.value
        d['stress_method'] = self.stress_method.value
        return d


@dataclass(frozen=True)
class DailyMetrics:
    """One calendar day of the fitness/fatigue series."""
    date: date
    tss: float
    ctl: float
    atl: float
    tsb: float
    acwr: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PersonalBest:
    """
    All-time record for a (sport, category, window) key.

    window is seconds for peak power, metres for fastest distance and 0 for
    session-level categories.
    """
    sport: Sport
    category: PBCategory
    window: int
    value: float
    session_id: str
    date: DateLike

    @property
    def key(self) -> Tuple[Sport, PBCategory, int]:
        return (self.sport, self.category, self.window)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d['sport'] = self.sport.value
        d['category'] = self.category.value
        return d


@dataclass(frozen=True)
class StressResult:
    """Stress score plus the method that produced it."""
    tss: float
    stress_method: StressMethod
    normalized_power: Optional[int] = None


@dataclass(frozen=True)
class TSSComparison:
    """Device-reported vs computed TSS."""
    device_tss: float
    computed_tss: float
    delta: float
    divergence_percent: float
    confidence: TSSConfidence
    warning: Optional[str] = None


@dataclass(frozen=True)
class TrainingEffect:
    """Aerobic and anaerobic training effect on a 0-5 scale."""
    aerobic: float
    anaerobic: float


@dataclass(frozen=True)
class TrainingEffectLabel:
    """Display band for a training effect score."""
    label: str
    color: str


@dataclass
class CoachingRecommendation:
    """
    Readiness snapshot derived from the latest DailyMetrics row.

    Recomputed on every read, never persisted on its own.
    """
    status: FormStatus
    message: str
    injury_risk: InjuryRisk
    acwr: float
    tsb: float
    data_maturity_days: int
    load_state: LoadState = LoadState.IMMATURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'message': self.message,
            'injury_risk': self.injury_risk.value,
            'acwr': self.acwr,
            'tsb': self.tsb,
            'data_maturity_days': self.data_maturity_days,
            'load_state': self.load_state.value,
        }


@dataclass(frozen=True)
class LapAnalysis:
    """Derived per-lap metrics."""
    lap_index: int
    pace_sec_per_km: Optional[float]
    avg_hr: Optional[float]
    avg_cadence: Optional[float]
    distance: float
    duration: float
    moving_time: float
    elevation_gain: float
    intensity: str
    is_interval: bool


@dataclass(frozen=True)
class IntervalPair:
    """An active interval lap with its following recovery lap, if any."""
    active: LapAnalysis
    recovery: Optional[LapAnalysis]
    hr_recovery: Optional[float]


@dataclass(frozen=True)
class ProgressiveOverload:
    """Pace and HR drift from the first to the last comparable lap."""
    pace_drift_percent: Optional[float]
    hr_drift_percent: Optional[float]
    lap_count: int
    trend: OverloadTrend
