"""
Training analytics engine for endurance sports.

This package provides pure functions for:
- Sensor validation and power filtering
- Normalized power and grade-adjusted pace
- Session stress (TSS, TRIMP, duration fallback)
- Training effect (aerobic/anaerobic)
- Training load (CTL, ATL, TSB, ACWR)
- Coaching classification (form, injury risk, load state)
- Lap and interval analysis
- Personal record detection
- Aerobic efficiency (EF, decoupling)

No function performs I/O or reads the clock; callers pass dates explicitly.
"""

# Data model
from .types import (
    Sport,
    Gender,
    StressMethod,
    FormStatus,
    InjuryRisk,
    LoadState,
    PBCategory,
    TSSConfidence,
    OverloadTrend,
    SessionRecord,
    SessionLap,
    SessionSummary,
    SensorWarning,
    TrainingSession,
    DailyMetrics,
    PersonalBest,
    StressResult,
    TSSComparison,
    TrainingEffect,
    TrainingEffectLabel,
    CoachingRecommendation,
    LapAnalysis,
    IntervalPair,
    ProgressiveOverload,
)

# Configuration
from .profile import (
    AthleteProfile,
    LoadModelParams,
    default_profile,
    parse_gender,
)

# Validation
from .validation import (
    validate_records,
    filter_valid_power,
)

# Normalization
from .normalize import (
    calculate_normalized_power,
    grade_adjusted_pace_factor,
    calculate_gap,
)

# Stress
from .stress import (
    calculate_tss,
    calculate_trimp,
    calculate_duration_stress,
    calculate_session_stress,
    compare_tss,
)

# Training effect
from .training_effect import (
    calculate_training_effect,
    get_training_effect_label,
    get_training_effect_summary,
)

# Training load
from .training_load import (
    calculate_ewma_step,
    compute_daily_metrics,
    get_current_metrics,
    history_days,
    metrics_to_frame,
    weekly_load,
)

# Coaching
from .coaching import (
    get_form_status,
    get_injury_risk,
    get_load_state,
    get_form_message,
    get_form_message_detailed,
    get_coaching_recommendation,
)

# Laps
from .laps import (
    analyze_laps,
    detect_intervals,
    detect_progressive_overload,
)

# Records
from .records import (
    PBSessionInput,
    extract_peak_power,
    extract_fastest_distances,
    detect_new_pbs,
    merge_pbs,
    upsert_pbs,
    compute_pbs_for_sessions,
    group_pbs_by_sport,
)

# Efficiency
from .efficiency import (
    calculate_ef,
    calculate_decoupling,
    get_ef_trend,
    calculate_ef_trend_slope,
)

# Session assembly
from .session import build_training_session

__all__ = [
    # Types
    'Sport',
    'Gender',
    'StressMethod',
    'FormStatus',
    'InjuryRisk',
    'LoadState',
    'PBCategory',
    'TSSConfidence',
    'OverloadTrend',
    'SessionRecord',
    'SessionLap',
    'SessionSummary',
    'SensorWarning',
    'TrainingSession',
    'DailyMetrics',
    'PersonalBest',
    'StressResult',
    'TSSComparison',
    'TrainingEffect',
    'TrainingEffectLabel',
    'CoachingRecommendation',
    'LapAnalysis',
    'IntervalPair',
    'ProgressiveOverload',
    # Profile
    'AthleteProfile',
    'LoadModelParams',
    'default_profile',
    'parse_gender',
    # Validation
    'validate_records',
    'filter_valid_power',
    # Normalization
    'calculate_normalized_power',
    'grade_adjusted_pace_factor',
    'calculate_gap',
    # Stress
    'calculate_tss',
    'calculate_trimp',
    'calculate_duration_stress',
    'calculate_session_stress',
    'compare_tss',
    # Training effect
    'calculate_training_effect',
    'get_training_effect_label',
    'get_training_effect_summary',
    # Load
    'calculate_ewma_step',
    'compute_daily_metrics',
    'get_current_metrics',
    'history_days',
    'metrics_to_frame',
    'weekly_load',
    # Coaching
    'get_form_status',
    'get_injury_risk',
    'get_load_state',
    'get_form_message',
    'get_form_message_detailed',
    'get_coaching_recommendation',
    # Laps
    'analyze_laps',
    'detect_intervals',
    'detect_progressive_overload',
    # Records
    'PBSessionInput',
    'extract_peak_power',
    'extract_fastest_distances',
    'detect_new_pbs',
    'merge_pbs',
    'upsert_pbs',
    'compute_pbs_for_sessions',
    'group_pbs_by_sport',
    # Efficiency
    'calculate_ef',
    'calculate_decoupling',
    'get_ef_trend',
    'calculate_ef_trend_slope',
    # Session
    'build_training_session',
]
