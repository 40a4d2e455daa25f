"""
Match Ledger

Time accounting, integrity checking and recovery for a youth-soccer match
event log, plus reconciliation of the cached match planning session.

The engine is exposed as plain functions and services; a small Flask JSON
API wraps them for the sideline app.
"""
from .models import MatchEvent, EventType, PlayerRole, PlanProgress, ValidationError
from .services import (
    calculate_effective_playing_time, calculate_player_time_totals,
    validate_match_data, recover_corrupted_events, validate_and_restore,
    recover_from_crash, reconcile_plan_progress, ServiceFactory
)
from .ui import create_app, run_web_app
from .utils import fmt_mmss, now_ms, APP_TITLE

__version__ = "2.0.0"
__author__ = "Match Ledger Development Team"

__all__ = [
    "MatchEvent", "EventType", "PlayerRole", "PlanProgress", "ValidationError",
    "calculate_effective_playing_time", "calculate_player_time_totals",
    "validate_match_data", "recover_corrupted_events", "validate_and_restore",
    "recover_from_crash", "reconcile_plan_progress", "ServiceFactory",
    "create_app", "run_web_app", "fmt_mmss", "now_ms", "APP_TITLE"
]
