"""
Models package for the match ledger engine.

This package contains the core data models used throughout the application.
"""
from .positions import (
    PlayerRole, PositionKey, POSITION_ROLE_MAP,
    role_for_position, normalize_role, is_field_role, is_substitute_position
)
from .match_event import (
    EventType, MatchEvent, EventDecodeError, decode_events, events_to_dicts,
    is_known_event_type, MatchStartData, MatchEndData, SubstitutionData,
    GoalieSwitchData, PositionSwitchData, PlayerStatusData, GoalData,
    PeriodData, GenericData
)
from .player_time import PlayerTimeTotals
from .validation import ValidationError, ValidationErrorType, Severity
from .plan_progress import PlanProgress, PlanningStatus, SortMetric, DEFAULT_SORT_METRIC
from .match_summary import MatchSummary, PlayerTimeSummary

__all__ = [
    "PlayerRole", "PositionKey", "POSITION_ROLE_MAP", "role_for_position",
    "normalize_role", "is_field_role", "is_substitute_position",
    "EventType", "MatchEvent", "EventDecodeError", "decode_events",
    "events_to_dicts", "is_known_event_type", "MatchStartData", "MatchEndData",
    "SubstitutionData", "GoalieSwitchData", "PositionSwitchData",
    "PlayerStatusData", "GoalData", "PeriodData", "GenericData",
    "PlayerTimeTotals", "ValidationError", "ValidationErrorType", "Severity",
    "PlanProgress", "PlanningStatus", "SortMetric", "DEFAULT_SORT_METRIC",
    "MatchSummary", "PlayerTimeSummary"
]
