"""
Utilities package for the match ledger engine.

This package contains utility functions and constants used throughout the application.
"""
from .time_utils import Clock, fmt_mmss, fmt_ms_mmss, now_ms, resolve_clock
from .constants import (
    APP_TITLE, MATCH_EVENTS_KEY, MATCH_EVENTS_BACKUP_KEY, MATCH_EVENTS_EMERGENCY_KEY,
    MATCH_EVENT_STORAGE_KEYS, PLAN_MATCH_PROGRESS_KEY, TIME_TOLERANCE_MS,
    PLAYER_TIME_TOLERANCE_SECONDS, DEFAULT_SORT_METRIC
)

__all__ = [
    "Clock", "fmt_mmss", "fmt_ms_mmss", "now_ms", "resolve_clock",
    "APP_TITLE", "MATCH_EVENTS_KEY", "MATCH_EVENTS_BACKUP_KEY",
    "MATCH_EVENTS_EMERGENCY_KEY", "MATCH_EVENT_STORAGE_KEYS",
    "PLAN_MATCH_PROGRESS_KEY", "TIME_TOLERANCE_MS",
    "PLAYER_TIME_TOLERANCE_SECONDS", "DEFAULT_SORT_METRIC"
]
