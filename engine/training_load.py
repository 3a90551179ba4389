"""
Training load: CTL, ATL, TSB and ACWR over an athlete's full history.

Based on:
- Banister (1991): impulse-response fitness/fatigue model
- Williams et al. (2017): EWMA-based ACWR

Daily stress is summed per calendar day, rest days are filled with zero, and
two exponentially weighted moving averages (seeded at 0 before the first day)
produce fitness (CTL, 42 d) and fatigue (ATL, 7 d).
"""

import logging
import math
from datetime import date
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .profile import LoadModelParams
from .types import TrainingSession, DailyMetrics, DateLike

logger = logging.getLogger(__name__)


def _round(value: float, digits: int) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def calculate_ewma_step(previous: float, value: float, days: int) -> float:
    """
    One EWMA step.

    metric_today = metric_yesterday + (value_today - metric_yesterday) * 2 / (days + 1)

    Non-finite values count as 0.
    """
    safe_value = value if math.isfinite(value) else 0.0
    alpha = LoadModelParams.alpha(days)
    result = previous + (safe_value - previous) * alpha
    return result if math.isfinite(result) else previous


def calculate_ewma(values: np.ndarray, span: int, seed: float = 0.0) -> np.ndarray:
    """
    Exponentially weighted moving average over a daily series.

    The state starts at ``seed`` before the first value, so the first output
    is seed + (values[0] - seed) * alpha rather than values[0].

    Args:
        values: Daily values (e.g. TSS)
        span: Time constant in days (42 for chronic, 7 for acute)
        seed: State before the first day

    Returns:
        Array of EWMA values, same length as ``values``
    """
    values = np.asarray(values, dtype=float)
    ewma = np.zeros(len(values))

    previous = seed
    for i, value in enumerate(values):
        previous = calculate_ewma_step(previous, value, span)
        ewma[i] = previous

    return ewma


def calculate_acwr_series(acute: np.ndarray, chronic: np.ndarray) -> np.ndarray:
    """ATL / CTL per day, 0 where chronic load is 0."""
    acute = np.asarray(acute, dtype=float)
    chronic = np.asarray(chronic, dtype=float)
    safe_chronic = np.where(chronic > 0, chronic, 1.0)
    return np.where(chronic > 0, acute / safe_chronic, 0.0)


def build_daily_tss(
    sessions: Sequence[TrainingSession],
    end_date: Optional[DateLike] = None,
    include_planned: bool = False
) -> pd.Series:
    """
    Sum session stress per calendar day over a gapless date range.

    The range runs from the earliest session's day through ``end_date``
    (or the latest session's day when omitted). Days without a session get
    0; sessions after ``end_date`` fall outside the range.

    Returns:
        Series of daily TSS indexed by a daily DatetimeIndex
    """
    eligible = [s for s in sessions if include_planned or not s.is_planned]
    if not eligible:
        return pd.Series(dtype=float)

    df = pd.DataFrame({
        'date': [pd.Timestamp(s.date).normalize() for s in eligible],
        'tss': [float(s.tss) if s.tss is not None else 0.0 for s in eligible],
    })
    df['tss'] = df['tss'].where(np.isfinite(df['tss']), 0.0)

    daily = df.groupby('date')['tss'].sum()

    start = daily.index.min()
    end = pd.Timestamp(end_date).normalize() if end_date is not None else daily.index.max()
    if end < start:
        return pd.Series(dtype=float)

    # Fill rest days with 0 load
    date_range = pd.date_range(start=start, end=end, freq='D')
    return daily.reindex(date_range, fill_value=0.0)


def compute_daily_metrics(
    sessions: Sequence[TrainingSession],
    end_date: Optional[DateLike] = None,
    include_planned: bool = False,
    params: Optional[LoadModelParams] = None
) -> List[DailyMetrics]:
    """
    Compute the fitness/fatigue series, one row per calendar day.

    CTL_t = CTL_{t-1} + (tss_t - CTL_{t-1}) * 2/43
    ATL_t = ATL_{t-1} + (tss_t - ATL_{t-1}) * 2/8
    TSB_t = CTL_t - ATL_t
    ACWR_t = ATL_t / CTL_t (0 when CTL_t = 0)

    Args:
        sessions: Session history, any order, any sport mix
        end_date: Caller-supplied "today"; defaults to the latest session day
        include_planned: Include planned (not yet performed) sessions
        params: Time constants (defaults to 42/7 days)

    Returns:
        List of DailyMetrics; the last row is the current state
    """
    if params is None:
        params = LoadModelParams()

    daily = build_daily_tss(sessions, end_date, include_planned)
    if daily.empty:
        return []

    tss = daily.to_numpy(dtype=float)
    ctl = calculate_ewma(tss, span=params.ctl_days)
    atl = calculate_ewma(tss, span=params.atl_days)
    tsb = ctl - atl
    acwr = calculate_acwr_series(atl, ctl)

    metrics = [
        DailyMetrics(
            date=day.date(),
            tss=float(tss[i]),
            ctl=_round(ctl[i], 1),
            atl=_round(atl[i], 1),
            tsb=_round(tsb[i], 1),
            acwr=_round(acwr[i], 2),
        )
        for i, day in enumerate(daily.index)
    ]

    logger.debug("Computed %d days of load metrics (%s to %s)",
                 len(metrics), metrics[0].date, metrics[-1].date)

    return metrics


def get_current_metrics(
    sessions: Sequence[TrainingSession],
    end_date: Optional[DateLike] = None,
    include_planned: bool = False,
    params: Optional[LoadModelParams] = None
) -> Optional[DailyMetrics]:
    """Latest row of the daily series, or None without history."""
    metrics = compute_daily_metrics(sessions, end_date, include_planned, params)
    return metrics[-1] if metrics else None


def history_days(metrics: Sequence[DailyMetrics]) -> int:
    """Number of calendar days covered by the series (data maturity)."""
    return len(metrics)


def metrics_to_frame(metrics: Sequence[DailyMetrics]) -> pd.DataFrame:
    """DataFrame of the daily series indexed by date, for charting/export."""
    if not metrics:
        return pd.DataFrame(columns=['tss', 'ctl', 'atl', 'tsb', 'acwr'])

    df = pd.DataFrame([m.to_dict() for m in metrics])
    df['date'] = pd.to_datetime(df['date'])
    return df.set_index('date')


def weekly_load(metrics: Sequence[DailyMetrics]) -> List[Tuple[date, float]]:
    """Total TSS per ISO week (Monday start) as (week_start, tss) pairs."""
    if not metrics:
        return []

    df = metrics_to_frame(metrics)
    weekly = df['tss'].resample('W-MON', label='left', closed='left').sum()
    return [(ts.date(), float(v)) for ts, v in weekly.items()]
