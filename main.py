#!/usr/bin/env python3
"""
Training Analytics Engine - CLI Entry Point

Usage:
    python main.py demo [--weeks W] [--seed S] [--start YYYY-MM-DD] [--csv PATH]
    python main.py test
"""

import argparse
import logging
from datetime import date, timedelta

from engine.profile import LoadModelParams, default_profile
from engine.records import detect_new_pbs, merge_pbs
from engine.training_load import compute_daily_metrics
from data.synthetic import generate_training_history
from analysis.reports import (
    export_metrics_csv,
    generate_demo_header,
    generate_load_report,
    generate_pb_report,
    generate_session_report,
)

logger = logging.getLogger(__name__)


def run_demo(weeks: int = 8, seed: int = 42, start: date = date(2024, 1, 1),
             csv_path: str = None, params: LoadModelParams = None):
    """Generate a synthetic history and print session, load and record reports."""
    print(f"Generating {weeks} weeks of synthetic training from {start} (seed {seed})...")

    profile = default_profile()
    params = params or LoadModelParams()
    history = generate_training_history(start, weeks=weeks, profile=profile, seed=seed)
    sessions = [h.session for h in history]
    logger.info("Generated %d sessions", len(sessions))

    if not history:
        logger.warning("No sessions in a %d-week history, nothing to report", weeks)
        print("No sessions generated.")
        return sessions, [], []

    # Sequential fold, one session at a time as during an import
    pbs = []
    for item in history:
        new_pbs = detect_new_pbs(
            item.session.id, item.session.date, item.session.sport,
            item.records, pbs,
            distance=item.session.distance,
            elevation_gain=item.session.elevation_gain,
        )
        pbs = merge_pbs(pbs, new_pbs)

    end_date = start + timedelta(days=weeks * 7 - 1)
    metrics = compute_daily_metrics(sessions, end_date=end_date, params=params)
    ctl = metrics[-1].ctl if metrics else 0.0

    print(generate_demo_header())

    latest = history[-1]
    print(generate_session_report(latest.session, latest.records, profile,
                                  laps=latest.laps, ctl=ctl))
    print(generate_load_report(metrics, params=params))
    print(generate_pb_report(pbs))

    if csv_path:
        export_metrics_csv(metrics, csv_path)
        print(f"Daily metrics saved to: {csv_path}")

    return sessions, metrics, pbs


def run_tests():
    """Run quick smoke checks over the engine."""
    print("Running tests...\n")

    print("Testing stress scoring...")
    from engine.stress import calculate_trimp
    from engine.types import Gender

    trimp = calculate_trimp(150, 3600, 50, 190, Gender.MALE)
    assert trimp > 0, "TRIMP should be positive"
    print(f"  TRIMP test passed: {trimp:.1f}")

    print("\nTesting normalized power...")
    from engine.normalize import calculate_normalized_power
    from engine.types import SessionRecord

    records = [SessionRecord(timestamp=i, power=200) for i in range(60)]
    np_watts = calculate_normalized_power(records)
    assert np_watts == 200, f"Constant power NP should be 200, got {np_watts}"
    print(f"  NP test passed: {np_watts} W")

    print("\nTesting training load...")
    from engine.coaching import get_form_status
    from engine.types import FormStatus

    assert get_form_status(25) == FormStatus.FRESH, "TSB 25 should be fresh"
    assert get_form_status(25.01) == FormStatus.DETRAINING, "TSB 25.01 should be detraining"
    print("  Form status test passed")

    print("\nTesting synthetic pipeline...")
    history = generate_training_history(date(2024, 1, 1), weeks=2, seed=42)
    metrics = compute_daily_metrics([h.session for h in history])
    assert len(metrics) > 0, "Should produce a daily series"
    print(f"  Pipeline test passed: {len(history)} sessions, {len(metrics)} days")

    print("\n" + "="*50)
    print("ALL TESTS PASSED!")
    print("="*50)


def main():
    parser = argparse.ArgumentParser(description='Training Analytics Engine')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Demo command
    demo_parser = subparsers.add_parser('demo', help='Run on a synthetic training history')
    demo_parser.add_argument('--weeks', type=int, default=8, help='History length in weeks')
    demo_parser.add_argument('--seed', type=int, default=42, help='Random seed')
    demo_parser.add_argument('--start', type=date.fromisoformat, default=date(2024, 1, 1),
                             help='First day of the history (YYYY-MM-DD)')
    demo_parser.add_argument('--csv', default=None, help='Export daily metrics to CSV')

    # Test command
    subparsers.add_parser('test', help='Run tests')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s',
    )

    if args.command == 'demo':
        run_demo(args.weeks, args.seed, args.start, args.csv)
    elif args.command == 'test':
        run_tests()
    else:
        parser.print_help()


if __name__ == '__main__':
    main()
