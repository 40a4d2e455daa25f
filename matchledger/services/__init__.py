"""
Services package for the match ledger engine.

This package contains the time accounting engine, the integrity validator,
recovery, persistence and plan progress reconciliation. Includes a factory
for dependency injection.
"""
from .time_accounting import (
    replay_order, pause_intervals, calculate_effective_playing_time,
    calculate_period_durations, calculate_player_time_totals
)
from .event_validator import (
    events_are_chronological, has_sequence_gaps, find_duplicate_events,
    validate_match_data, find_player_time_mismatches,
    validate_player_time_consistency
)
from .storage import StorageError, StoragePort, InMemoryStorage, FileStorage
from .persistence_service import PersistenceManager
from .recovery_service import (
    recover_corrupted_events, validate_and_restore, recover_from_crash,
    CrashRecoveryService
)
from .plan_progress_service import (
    reconcile_plan_progress, are_match_lists_equal, are_id_lists_equal,
    are_selection_maps_equal, PlanProgressService, PlanProgressError
)
from .match_summary_service import MatchSummaryService, MatchSummaryExporter
from .service_factory import ServiceFactory

__all__ = [
    "replay_order", "pause_intervals", "calculate_effective_playing_time",
    "calculate_period_durations", "calculate_player_time_totals",
    "events_are_chronological", "has_sequence_gaps", "find_duplicate_events",
    "validate_match_data", "find_player_time_mismatches",
    "validate_player_time_consistency", "StorageError", "StoragePort",
    "InMemoryStorage", "FileStorage", "PersistenceManager",
    "recover_corrupted_events", "validate_and_restore", "recover_from_crash",
    "CrashRecoveryService", "reconcile_plan_progress", "are_match_lists_equal",
    "are_id_lists_equal", "are_selection_maps_equal", "PlanProgressService",
    "PlanProgressError", "MatchSummaryService", "MatchSummaryExporter",
    "ServiceFactory"
]
