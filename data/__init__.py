"""Synthetic data generation utilities."""

from .synthetic import (
    SyntheticSession,
    make_cycling_records,
    make_running_records,
    make_swimming_records,
    make_interval_laps,
    generate_session,
    generate_training_history,
)

__all__ = [
    # Sample streams
    'make_cycling_records',
    'make_running_records',
    'make_swimming_records',
    'make_interval_laps',
    # Histories
    'SyntheticSession',
    'generate_session',
    'generate_training_history',
]
