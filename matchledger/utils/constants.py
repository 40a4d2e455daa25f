"""
Constants for the match ledger engine.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Match Ledger"

# Persisted storage keys (shared with the live match client)
MATCH_EVENTS_KEY = "dif-coach-match-events"
MATCH_EVENTS_BACKUP_KEY = "dif-coach-match-events-backup"
MATCH_EVENTS_EMERGENCY_KEY = "dif-coach-match-events-emergency"
PLAN_MATCH_PROGRESS_KEY = "dif-coach-plan-match-progress"

# Crash recovery tries these in order
MATCH_EVENT_STORAGE_KEYS = (
    MATCH_EVENTS_KEY,
    MATCH_EVENTS_BACKUP_KEY,
    MATCH_EVENTS_EMERGENCY_KEY,
)

# Integrity tolerances
TIME_TOLERANCE_MS = 5000  # recomputed vs. recorded effective time
PLAYER_TIME_TOLERANCE_SECONDS = 5

# Plan progress
DEFAULT_SORT_METRIC = "practices"

# Web API defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7122
DEFAULT_STORAGE_DIR = "storage"
