"""
Tests for personal record detection and lap analysis.

Tests cover:
1. Peak power sliding window
2. Fastest distance two-pointer search
3. New record detection, merge and upsert
4. Best-of-set records across sessions
5. Lap analysis, interval pairing and progressive overload

Run with: python -m pytest tests/test_records.py -v
"""

from datetime import datetime

import pytest

from engine.records import (
    PB_SLOTS,
    POWER_WINDOWS,
    PBSessionInput,
    extract_peak_power,
    extract_fastest_distances,
    cumulative_ascent,
    compute_session_peaks,
    detect_new_pbs,
    merge_pbs,
    upsert_pbs,
    compute_pbs_for_sessions,
    group_pbs_by_sport,
    is_better,
)
from engine.laps import analyze_laps, detect_intervals, detect_progressive_overload
from engine.types import (
    SessionRecord,
    SessionLap,
    PersonalBest,
    PBCategory,
    Sport,
    OverloadTrend,
)
from data.synthetic import (
    make_cycling_records,
    make_running_records,
    make_swimming_records,
    make_interval_laps,
)


DAY_1 = datetime(2024, 3, 1, 8, 0)
DAY_2 = datetime(2024, 3, 8, 8, 0)


def power_records(values):
    return [SessionRecord(timestamp=float(i), power=float(p)) for i, p in enumerate(values)]


def steady_records(speed, count):
    return [SessionRecord(timestamp=float(i), speed=speed, distance=speed * (i + 1))
            for i in range(count)]


def make_pb(category, window, value, session_id='old', sport=Sport.CYCLING):
    return PersonalBest(sport=sport, category=category, window=window,
                        value=value, session_id=session_id, date=DAY_1)


# =============================================================================
# Windowed Search Tests
# =============================================================================

class TestPeakPower:
    """Tests for peak average power."""

    def test_constant_power(self):
        peaks = extract_peak_power(power_records([200] * 100))
        assert peaks == {5: 200.0, 60: 200.0}

    def test_short_windows_find_spikes(self):
        peaks = extract_peak_power(power_records([100] * 50 + [500] * 5 + [100] * 50))
        assert peaks[5] == 500.0
        assert peaks[60] < 500.0

    def test_windows_longer_than_data_omitted(self):
        peaks = extract_peak_power(power_records([250] * 299))
        assert 300 not in peaks
        assert set(peaks) == {5, 60}

    def test_full_hour(self):
        peaks = extract_peak_power(make_cycling_records(3600))
        assert set(peaks) == set(POWER_WINDOWS)
        assert peaks[5] >= peaks[60] >= peaks[300] >= peaks[1200] >= peaks[3600]

    def test_rounded_to_one_decimal(self):
        peaks = extract_peak_power(power_records([200, 201, 201] * 10))
        assert peaks[5] == round(peaks[5], 1)

    def test_zero_power_excluded(self):
        assert extract_peak_power(power_records([0] * 100)) == {}

    def test_non_finite_samples_excluded(self):
        peaks = extract_peak_power(power_records([200] * 50 + [float('inf')] + [200] * 50))
        assert peaks == {5: 200.0, 60: 200.0}


class TestFastestDistance:
    """Tests for the two-pointer fastest distance search."""

    def test_steady_pace(self):
        results = extract_fastest_distances(steady_records(4.0, 600), [1000, 5000])
        assert results == {1000: 250.0}

    def test_unreachable_target_omitted(self):
        assert extract_fastest_distances(steady_records(4.0, 100), [1000]) == {}

    def test_finds_fast_segment(self):
        records = []
        distance = 0.0
        for i in range(1200):
            speed = 5.0 if 400 <= i < 800 else 2.5
            distance += speed
            records.append(SessionRecord(timestamp=float(i), speed=speed, distance=distance))

        results = extract_fastest_distances(records, [1000])
        assert results[1000] == pytest.approx(200, abs=1)

    def test_missing_distance_ignored(self):
        records = steady_records(4.0, 600) + [SessionRecord(timestamp=700.0)]
        assert extract_fastest_distances(records, [1000]) == {1000: 250.0}

    def test_too_few_samples(self):
        assert extract_fastest_distances(steady_records(4.0, 1), [100]) == {}


class TestSessionLevel:
    """Tests for session-level record inputs."""

    def test_cumulative_ascent(self):
        records = [SessionRecord(timestamp=float(i), elevation=e)
                   for i, e in enumerate([100, 105, 103, 110, 110])]
        assert cumulative_ascent(records) == 12.0

    def test_ascent_needs_two_samples(self):
        assert cumulative_ascent([SessionRecord(timestamp=0, elevation=100)]) is None


# =============================================================================
# Record Detection Tests
# =============================================================================

class TestDetectNewPBs:
    """Tests for detection against existing bests."""

    def test_first_cycling_session_fills_every_slot(self):
        records = make_cycling_records(3600)
        pbs = detect_new_pbs('ride', DAY_1, Sport.CYCLING, records, [])

        keys = [(pb.category, pb.window) for pb in pbs]
        assert len(keys) == len(set(keys))
        assert set(keys) == set(PB_SLOTS[Sport.CYCLING])

    def test_first_running_session_reachable_slots(self):
        records = make_running_records(3600)    # ~12.6 km
        pbs = detect_new_pbs('run', DAY_1, Sport.RUNNING, records, [])

        keys = {(pb.category, pb.window) for pb in pbs}
        assert len(pbs) == len(keys)
        assert keys == {
            (PBCategory.FASTEST_DISTANCE, 1000),
            (PBCategory.FASTEST_DISTANCE, 5000),
            (PBCategory.FASTEST_DISTANCE, 10000),
            (PBCategory.LONGEST, 0),
        }

    def test_swimming_distances(self):
        records = make_swimming_records(1800)   # ~2.7 km
        pbs = detect_new_pbs('swim', DAY_1, Sport.SWIMMING, records, [])
        windows = {pb.window for pb in pbs if pb.category == PBCategory.FASTEST_DISTANCE}
        assert windows == {100, 400, 1000, 1500}

    def test_weaker_session_sets_nothing(self):
        strong = detect_new_pbs('a', DAY_1, Sport.CYCLING,
                                make_cycling_records(3600, base_power=260), [],
                                distance=40000, elevation_gain=600)
        weak_records = make_cycling_records(1800, base_power=200)
        weak = detect_new_pbs('b', DAY_2, Sport.CYCLING, weak_records, strong,
                              distance=25000, elevation_gain=350)

        candidates = compute_session_peaks(Sport.CYCLING, weak_records, 25000, 350)
        assert {c[0] for c in candidates} == {
            PBCategory.PEAK_POWER, PBCategory.LONGEST, PBCategory.MOST_ELEVATION,
        }
        assert weak == []

    def test_equal_session_sets_nothing(self):
        records = make_running_records(1800)
        first = detect_new_pbs('a', DAY_1, Sport.RUNNING, records, [])
        assert detect_new_pbs('b', DAY_2, Sport.RUNNING, records, first) == []

    def test_supplied_distance_used_for_longest(self):
        pbs = detect_new_pbs('a', DAY_1, Sport.RUNNING, [], [], distance=42195)
        assert len(pbs) == 1
        assert pbs[0].category == PBCategory.LONGEST
        assert pbs[0].value == 42195

    def test_elevation_only_for_cycling(self):
        pbs = detect_new_pbs('a', DAY_1, Sport.RUNNING, [], [], distance=5000, elevation_gain=300)
        assert PBCategory.MOST_ELEVATION not in {pb.category for pb in pbs}

        pbs = detect_new_pbs('b', DAY_1, Sport.CYCLING, [], [], distance=50000, elevation_gain=300)
        assert PBCategory.MOST_ELEVATION in {pb.category for pb in pbs}

    def test_fast_then_slow_run(self):
        """A slow run after a fast run sets no fastest-distance records."""
        fast = make_running_records(3600, base_speed=4.5)
        slow = make_running_records(3600, base_speed=2.5)

        bests = []
        bests = merge_pbs(bests, detect_new_pbs('fast', DAY_1, Sport.RUNNING, fast, bests))
        new = detect_new_pbs('slow', DAY_2, Sport.RUNNING, slow, bests)

        assert [pb for pb in new if pb.category == PBCategory.FASTEST_DISTANCE] == []

    def test_slow_then_fast_run_improves(self):
        slow = make_running_records(3600, base_speed=2.5)
        fast = make_running_records(3600, base_speed=4.5)

        bests = detect_new_pbs('slow', DAY_1, Sport.RUNNING, slow, [])
        new = detect_new_pbs('fast', DAY_2, Sport.RUNNING, fast, bests)

        improved = {pb.window for pb in new if pb.category == PBCategory.FASTEST_DISTANCE}
        assert {1000, 5000}.issubset(improved)
        assert all(pb.session_id == 'fast' for pb in new)

    def test_comparator_direction(self):
        assert is_better(PBCategory.FASTEST_DISTANCE, 200, 210)
        assert not is_better(PBCategory.FASTEST_DISTANCE, 220, 210)
        assert is_better(PBCategory.PEAK_POWER, 300, 290)
        assert not is_better(PBCategory.PEAK_POWER, 290, 290)
        assert is_better(PBCategory.LONGEST, 1, None)


class TestMergePBs:
    """Tests for merge and upsert."""

    @pytest.fixture
    def existing(self):
        return [
            make_pb(PBCategory.PEAK_POWER, 5, 800),
            make_pb(PBCategory.PEAK_POWER, 60, 400),
        ]

    def test_novel_keys_append(self, existing):
        incoming = [
            make_pb(PBCategory.PEAK_POWER, 300, 320, 'new'),
            make_pb(PBCategory.LONGEST, 0, 90000, 'new'),
            make_pb(PBCategory.MOST_ELEVATION, 0, 1500, 'new'),
        ]
        merged = merge_pbs(existing, incoming)
        assert len(merged) == len(existing) + 3

    def test_duplicate_key_replaces(self, existing):
        merged = merge_pbs(existing, [make_pb(PBCategory.PEAK_POWER, 5, 900, 'new')])
        assert len(merged) == 2
        assert merged[0].value == 900
        assert merged[0].session_id == 'new'

    def test_merge_is_unconditional(self, existing):
        merged = merge_pbs(existing, [make_pb(PBCategory.PEAK_POWER, 5, 100, 'worse')])
        assert merged[0].value == 100

    def test_inputs_not_mutated(self, existing):
        before = list(existing)
        merge_pbs(existing, [make_pb(PBCategory.PEAK_POWER, 5, 900, 'new')])
        assert existing == before

    def test_upsert_never_downgrades(self, existing):
        merged = upsert_pbs(existing, [make_pb(PBCategory.PEAK_POWER, 5, 100, 'worse')])
        assert merged[0].value == 800
        assert merged[0].session_id == 'old'

    def test_upsert_replaces_when_better(self, existing):
        merged = upsert_pbs(existing, [
            make_pb(PBCategory.PEAK_POWER, 5, 900, 'new'),
            make_pb(PBCategory.PEAK_POWER, 1200, 280, 'new'),
        ])
        assert len(merged) == 3
        assert merged[0].value == 900

    def test_upsert_lower_is_better_for_distance(self):
        existing = [make_pb(PBCategory.FASTEST_DISTANCE, 5000, 1200, sport=Sport.RUNNING)]
        slower = make_pb(PBCategory.FASTEST_DISTANCE, 5000, 1300, 'slower', sport=Sport.RUNNING)
        faster = make_pb(PBCategory.FASTEST_DISTANCE, 5000, 1100, 'faster', sport=Sport.RUNNING)

        assert upsert_pbs(existing, [slower])[0].session_id == 'old'
        assert upsert_pbs(existing, [faster])[0].session_id == 'faster'

    def test_to_dict_uses_wire_strings(self):
        d = make_pb(PBCategory.PEAK_POWER, 5, 800).to_dict()
        assert d['category'] == 'peak-power'
        assert d['sport'] == 'cycling'


class TestComputePBsForSessions:
    """Tests for best-of-set records."""

    def test_best_session_wins_each_key(self):
        sessions = [
            PBSessionInput('easy', DAY_1, Sport.CYCLING, make_cycling_records(1200, base_power=180)),
            PBSessionInput('hard', DAY_2, Sport.CYCLING, make_cycling_records(1200, base_power=240)),
        ]
        pbs = compute_pbs_for_sessions(sessions)

        peak_power = [pb for pb in pbs if pb.category == PBCategory.PEAK_POWER]
        assert {pb.window for pb in peak_power} == {5, 60, 300, 1200}
        assert all(pb.session_id == 'hard' for pb in peak_power)

    def test_ties_keep_first_session(self):
        records = make_cycling_records(600)
        pbs = compute_pbs_for_sessions([
            PBSessionInput('first', DAY_1, Sport.CYCLING, records),
            PBSessionInput('second', DAY_2, Sport.CYCLING, records),
        ])
        assert all(pb.session_id == 'first' for pb in pbs)

    def test_empty(self):
        assert compute_pbs_for_sessions([]) == []

    def test_group_by_sport(self):
        pbs = compute_pbs_for_sessions([
            PBSessionInput('ride', DAY_1, Sport.CYCLING, make_cycling_records(600)),
            PBSessionInput('run', DAY_1, Sport.RUNNING, make_running_records(600)),
        ])
        grouped = group_pbs_by_sport(pbs)
        assert set(grouped) == {Sport.CYCLING, Sport.RUNNING}
        assert all(pb.sport == Sport.RUNNING for pb in grouped[Sport.RUNNING])


# =============================================================================
# Lap Analysis Tests
# =============================================================================

class TestLapAnalysis:
    """Tests for per-lap metrics and interval detection."""

    def test_interval_flags(self):
        analyzed = analyze_laps(make_interval_laps(intervals=4))
        assert len(analyzed) == 8
        assert [lap.is_interval for lap in analyzed] == [True, False] * 4

    def test_pace_from_moving_time(self):
        analyzed = analyze_laps(make_interval_laps(intervals=1, work_speed=4.0))
        assert analyzed[0].pace_sec_per_km == pytest.approx(250.0)

    def test_timer_time_fallback_and_zero_distance(self):
        lap = SessionLap(lap_index=0, start_time=0, end_time=300, total_elapsed_time=310,
                         total_timer_time=300, distance=0)
        analyzed = analyze_laps([lap])[0]
        assert analyzed.moving_time == 300
        assert analyzed.pace_sec_per_km is None
        assert analyzed.intensity == 'active'

    def test_all_active_laps_are_not_intervals(self):
        laps = make_interval_laps(intervals=2)
        steady = [SessionLap(**{**lap.to_dict(), 'intensity': 'active'}) for lap in laps]
        assert not any(lap.is_interval for lap in analyze_laps(steady))
        assert detect_intervals(steady) == []

    def test_empty(self):
        assert analyze_laps([]) == []
        assert detect_intervals([]) == []

    def test_interval_pairs(self):
        pairs = detect_intervals(make_interval_laps(intervals=3))
        assert len(pairs) == 3
        assert all(pair.recovery is not None for pair in pairs)
        # work max HR 178 - recovery min HR 120
        assert pairs[0].hr_recovery == 58

    def test_trailing_interval_without_recovery(self):
        laps = make_interval_laps(intervals=2)[:-1]
        pairs = detect_intervals(laps)
        assert pairs[-1].recovery is None
        assert pairs[-1].hr_recovery is None


class TestProgressiveOverload:
    """Tests for pacing drift across comparable laps."""

    def test_fading(self):
        result = detect_progressive_overload(make_interval_laps(intervals=4, fade=0.02))
        assert result.trend == OverloadTrend.FADING
        assert result.lap_count == 4
        assert result.pace_drift_percent == pytest.approx(6.4)
        assert result.hr_drift_percent == pytest.approx(3.5)

    def test_building(self):
        result = detect_progressive_overload(make_interval_laps(intervals=4, fade=-0.02))
        assert result.trend == OverloadTrend.BUILDING

    def test_stable(self):
        result = detect_progressive_overload(make_interval_laps(intervals=4))
        assert result.trend == OverloadTrend.STABLE
        assert result.pace_drift_percent == 0.0

    def test_single_lap(self):
        result = detect_progressive_overload(make_interval_laps(intervals=1)[:1])
        assert result.trend == OverloadTrend.STABLE
        assert result.pace_drift_percent is None
        assert result.lap_count == 1


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
