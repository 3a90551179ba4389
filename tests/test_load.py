"""
Tests for training load tracking and coaching classification.

Tests cover:
1. EWMA step and seeding convention
2. Daily series construction (gap fill, same-day sums, planned sessions)
3. DataFrame export and weekly totals
4. Form status, injury risk and load state boundaries
5. Coaching recommendation and narrative messages

Run with: python -m pytest tests/test_load.py -v
"""

from datetime import date, datetime, timedelta

import pytest
import numpy as np
import pandas as pd

from engine.training_load import (
    calculate_ewma,
    calculate_ewma_step,
    calculate_acwr_series,
    build_daily_tss,
    compute_daily_metrics,
    get_current_metrics,
    history_days,
    metrics_to_frame,
    weekly_load,
)
from engine.coaching import (
    get_form_status,
    get_injury_risk,
    get_load_state,
    get_form_message,
    get_form_message_detailed,
    get_coaching_recommendation,
    IMMATURE_MESSAGES,
    RISK_MESSAGES,
    SWEET_SPOT_MESSAGES,
    NO_DATA_MESSAGE,
)
from engine.profile import LoadModelParams
from engine.types import (
    TrainingSession,
    DailyMetrics,
    Sport,
    StressMethod,
    FormStatus,
    InjuryRisk,
    LoadState,
)


START = date(2024, 1, 1)  # a Monday


def make_session(day_offset, tss, session_id=None, is_planned=False, sport=Sport.CYCLING):
    day = START + timedelta(days=day_offset)
    return TrainingSession(
        id=session_id or f"s{day_offset}-{tss}",
        sport=sport,
        date=datetime(day.year, day.month, day.day, 7, 30),
        duration=3600,
        distance=30000,
        tss=tss,
        stress_method=StressMethod.POWER,
        is_planned=is_planned,
    )


def make_metrics(tsb, acwr):
    return DailyMetrics(date=START, tss=0.0, ctl=50.0, atl=50.0 - tsb, tsb=tsb, acwr=acwr)


# =============================================================================
# EWMA Tests
# =============================================================================

class TestEWMA:
    """Tests for the exponentially weighted moving average."""

    def test_step(self):
        assert calculate_ewma_step(0, 100, 7) == pytest.approx(25.0)
        assert calculate_ewma_step(50, 50, 42) == pytest.approx(50.0)

    def test_non_finite_value_counts_as_zero(self):
        assert calculate_ewma_step(40, float('nan'), 7) == pytest.approx(30.0)
        assert calculate_ewma_step(40, float('inf'), 7) == pytest.approx(30.0)

    def test_seeded_at_zero(self):
        """First output is alpha * value, not the value itself."""
        ewma = calculate_ewma(np.array([100.0]), span=42)
        assert ewma[0] == pytest.approx(100 * 2 / 43)

    def test_converges_to_constant_load(self):
        ewma = calculate_ewma(np.full(400, 80.0), span=42)
        assert ewma[-1] == pytest.approx(80.0, abs=0.01)
        assert np.all(np.diff(ewma) > 0)

    def test_acwr_zero_without_chronic_load(self):
        acwr = calculate_acwr_series(np.array([10.0, 0.0]), np.array([0.0, 5.0]))
        assert acwr[0] == 0.0
        assert acwr[1] == 0.0


# =============================================================================
# Daily Series Tests
# =============================================================================

class TestDailyMetrics:
    """Tests for the daily CTL/ATL/TSB/ACWR series."""

    def test_empty_history(self):
        assert compute_daily_metrics([]) == []
        assert get_current_metrics([]) is None

    def test_single_session_seeding(self):
        """A single 100 TSS day: CTL = 100 * 2/43, ATL = 25."""
        metrics = compute_daily_metrics([make_session(0, 100)])

        assert len(metrics) == 1
        row = metrics[0]
        assert row.date == START
        assert row.tss == 100
        assert row.ctl == pytest.approx(4.7)
        assert row.atl == pytest.approx(25.0)
        assert row.tsb == pytest.approx(-20.3)
        assert row.acwr == pytest.approx(5.38, abs=0.01)

    def test_rest_days_filled_with_zero(self):
        metrics = compute_daily_metrics([make_session(0, 60), make_session(3, 80)])
        assert [m.tss for m in metrics] == [60, 0, 0, 80]
        assert [m.date for m in metrics] == [START + timedelta(days=i) for i in range(4)]

    def test_same_day_sessions_summed(self):
        metrics = compute_daily_metrics([make_session(0, 40, 'a'), make_session(0, 35, 'b')])
        assert len(metrics) == 1
        assert metrics[0].tss == 75

    def test_input_order_irrelevant(self):
        sessions = [make_session(i * 2, 50 + i) for i in range(10)]
        forward = compute_daily_metrics(sessions)
        backward = compute_daily_metrics(list(reversed(sessions)))
        assert forward == backward

    def test_end_date_extends_with_rest_days(self):
        metrics = compute_daily_metrics([make_session(0, 100)], end_date=START + timedelta(days=9))
        assert len(metrics) == 10
        assert all(m.tss == 0 for m in metrics[1:])
        # Fatigue decays faster than fitness
        assert metrics[-1].atl < metrics[-1].ctl

    def test_end_date_before_history(self):
        assert compute_daily_metrics([make_session(5, 100)], end_date=START) == []

    def test_planned_sessions_excluded_by_default(self):
        sessions = [make_session(0, 100, is_planned=True)]
        assert compute_daily_metrics(sessions) == []
        assert len(compute_daily_metrics(sessions, include_planned=True)) == 1

    def test_non_finite_tss_counts_as_zero(self):
        metrics = compute_daily_metrics([make_session(0, float('nan')), make_session(1, 50)])
        assert metrics[0].tss == 0
        assert metrics[0].ctl == 0

    def test_tsb_is_ctl_minus_atl(self):
        sessions = [make_session(i, 60 + (i % 3) * 20) for i in range(30)]
        for m in compute_daily_metrics(sessions):
            assert m.tsb == pytest.approx(m.ctl - m.atl, abs=0.11)

    def test_sports_share_one_load(self):
        sessions = [make_session(0, 50, 'run', sport=Sport.RUNNING),
                    make_session(0, 50, 'ride', sport=Sport.CYCLING)]
        assert compute_daily_metrics(sessions)[0].tss == 100

    def test_custom_time_constants(self):
        params = LoadModelParams(ctl_days=28, atl_days=3)
        row = compute_daily_metrics([make_session(0, 100)], params=params)[0]
        assert row.atl == pytest.approx(50.0)

    def test_current_metrics_is_last_row(self):
        sessions = [make_session(i, 70) for i in range(5)]
        assert get_current_metrics(sessions) == compute_daily_metrics(sessions)[-1]

    def test_history_days(self):
        metrics = compute_daily_metrics([make_session(0, 50), make_session(27, 50)])
        assert history_days(metrics) == 28

    def test_build_daily_tss_index(self):
        daily = build_daily_tss([make_session(0, 10), make_session(2, 20)])
        assert list(daily.values) == [10, 0, 20]
        assert daily.index[0] == pd.Timestamp(START)


class TestLoadExport:
    """Tests for DataFrame export and weekly totals."""

    def test_metrics_to_frame(self):
        metrics = compute_daily_metrics([make_session(i, 50) for i in range(7)])
        df = metrics_to_frame(metrics)
        assert len(df) == 7
        assert list(df.columns) == ['tss', 'ctl', 'atl', 'tsb', 'acwr']
        assert df['tss'].sum() == 350

    def test_empty_frame(self):
        assert metrics_to_frame([]).empty

    def test_weekly_load(self):
        metrics = compute_daily_metrics([make_session(i, 100) for i in range(14)])
        weeks = weekly_load(metrics)
        assert len(weeks) == 2
        assert weeks[0][0] == START
        assert all(week_start.weekday() == 0 for week_start, _ in weeks)
        assert [tss for _, tss in weeks] == [700, 700]

    def test_weekly_load_empty(self):
        assert weekly_load([]) == []


# =============================================================================
# Classification Tests
# =============================================================================

class TestFormStatus:
    """Tests for TSB bands; boundaries belong to the lower band."""

    @pytest.mark.parametrize("tsb,expected", [
        (25.01, FormStatus.DETRAINING),
        (25, FormStatus.FRESH),
        (5, FormStatus.FRESH),
        (4.9, FormStatus.NEUTRAL),
        (-10, FormStatus.NEUTRAL),
        (-10.1, FormStatus.OPTIMAL),
        (-30, FormStatus.OPTIMAL),
        (-30.1, FormStatus.OVERLOAD),
    ])
    def test_bands(self, tsb, expected):
        assert get_form_status(tsb) == expected

    def test_wire_strings(self):
        assert get_form_status(25) == "fresh"
        assert get_form_status(25.01) == "detraining"


class TestInjuryRisk:
    """Tests for ACWR injury risk."""

    @pytest.mark.parametrize("acwr,expected", [
        (0.5, InjuryRisk.LOW),
        (1.3, InjuryRisk.LOW),
        (1.31, InjuryRisk.MODERATE),
        (1.5, InjuryRisk.MODERATE),
        (1.51, InjuryRisk.HIGH),
    ])
    def test_bands(self, acwr, expected):
        assert get_injury_risk(acwr) == expected


class TestLoadState:
    """Tests for the maturity-gated load state."""

    def test_maturity_boundary(self):
        assert get_load_state(1.0, 27) == LoadState.IMMATURE
        assert get_load_state(1.0, 28) == LoadState.SWEET_SPOT

    def test_custom_maturity_cutoff(self):
        params = LoadModelParams(maturity_days=21)
        assert get_load_state(1.0, 20, params.maturity_days) == LoadState.IMMATURE
        assert get_load_state(1.0, 21, params.maturity_days) == LoadState.SWEET_SPOT
        assert get_load_state(1.0, 21) == LoadState.IMMATURE

    def test_immature_ignores_acwr(self):
        assert get_load_state(2.5, 10) == LoadState.IMMATURE
        assert get_load_state(0.2, 0) == LoadState.IMMATURE

    @pytest.mark.parametrize("acwr,expected", [
        (1.6, LoadState.HIGH_RISK),
        (1.5, LoadState.MODERATE_RISK),
        (1.4, LoadState.MODERATE_RISK),
        (1.3, LoadState.SWEET_SPOT),
        (0.8, LoadState.SWEET_SPOT),
        (0.79, LoadState.UNDERTRAINING),
    ])
    def test_mature_bands(self, acwr, expected):
        assert get_load_state(acwr, 60) == expected


# =============================================================================
# Coaching Tests
# =============================================================================

class TestCoaching:
    """Tests for recommendations and narrative messages."""

    def test_no_data(self):
        rec = get_coaching_recommendation(None, 0)
        assert rec.status == FormStatus.NEUTRAL
        assert rec.message == NO_DATA_MESSAGE
        assert rec.injury_risk == InjuryRisk.LOW
        assert rec.load_state == LoadState.IMMATURE

    def test_recommendation_from_metrics(self):
        rec = get_coaching_recommendation(make_metrics(tsb=10, acwr=1.0), 40)
        assert rec.status == FormStatus.FRESH
        assert rec.injury_risk == InjuryRisk.LOW
        assert rec.load_state == LoadState.SWEET_SPOT
        assert rec.message == get_form_message(FormStatus.FRESH)
        assert rec.to_dict()['load_state'] == 'sweet-spot'

    def test_immature_message_avoids_risk_language(self):
        rec = get_coaching_recommendation(make_metrics(tsb=-40, acwr=1.8), 14)
        message = get_form_message_detailed(rec)
        assert "stabilizing" in message
        for phrase in ("injury risk", "danger zone", "ramp rate"):
            assert phrase not in message.lower()

    def test_custom_maturity_reaches_detailed_message(self):
        rec = get_coaching_recommendation(make_metrics(tsb=0, acwr=1.0), 21, maturity_days=21)
        assert rec.load_state == LoadState.SWEET_SPOT
        assert get_form_message_detailed(rec) == SWEET_SPOT_MESSAGES[FormStatus.NEUTRAL]

    def test_all_immature_messages_share_prefix(self):
        for message in IMMATURE_MESSAGES.values():
            assert message.startswith("Your fitness metrics are still stabilizing")

    def test_high_risk_message(self):
        rec = get_coaching_recommendation(make_metrics(tsb=10, acwr=1.6), 40)
        assert rec.injury_risk == InjuryRisk.HIGH
        assert get_form_message_detailed(rec) == RISK_MESSAGES[FormStatus.FRESH][InjuryRisk.HIGH]

    def test_moderate_risk_message(self):
        rec = get_coaching_recommendation(make_metrics(tsb=-20, acwr=1.4), 40)
        assert get_form_message_detailed(rec) == RISK_MESSAGES[FormStatus.OPTIMAL][InjuryRisk.MODERATE]

    def test_undertraining_message(self):
        rec = get_coaching_recommendation(make_metrics(tsb=30, acwr=0.5), 40)
        assert rec.status == FormStatus.DETRAINING
        assert "deconditioning" in get_form_message_detailed(rec)

    def test_sweet_spot_message(self):
        rec = get_coaching_recommendation(make_metrics(tsb=0, acwr=1.0), 40)
        assert get_form_message_detailed(rec) == SWEET_SPOT_MESSAGES[FormStatus.NEUTRAL]

    def test_every_status_has_messages(self):
        for status in FormStatus:
            assert get_form_message(status)
            assert status in RISK_MESSAGES


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
