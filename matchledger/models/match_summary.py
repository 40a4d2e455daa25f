"""Dataclasses representing the derived summary of a recorded match."""

from dataclasses import dataclass, field
from typing import Dict, List

from .validation import ValidationError


@dataclass
class PlayerTimeSummary:
    """Playing time information for a single player, in milliseconds."""

    player_id: str
    time_on_field: int
    time_as_defender: int
    time_as_midfielder: int
    time_as_attacker: int
    time_as_goalie: int
    time_as_substitute: int
    share_of_match: float


@dataclass
class MatchSummary:
    """Snapshot of everything derived from one event log."""

    generated_ts: int
    event_count: int
    effective_time_ms: int
    period_durations: Dict[int, int] = field(default_factory=dict)
    goals_scored: int = 0
    goals_conceded: int = 0
    finished: bool = False
    players: List[PlayerTimeSummary] = field(default_factory=list)
    issues: List[ValidationError] = field(default_factory=list)
    can_finalize: bool = False
