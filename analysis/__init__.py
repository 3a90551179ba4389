"""Reporting utilities."""

from .reports import (
    generate_session_report,
    generate_load_report,
    generate_pb_report,
    export_metrics_csv,
    export_sessions_csv,
)

__all__ = [
    'generate_session_report',
    'generate_load_report',
    'generate_pb_report',
    'export_metrics_csv',
    'export_sessions_csv',
]
