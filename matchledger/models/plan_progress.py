"""Cached planning-session state for matches being pre-planned."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..utils import constants


class SortMetric(str, Enum):
    """Strategy used to auto-select and order players while planning."""
    PRACTICES = "practices"
    ATTENDANCE = "attendance"

    @classmethod
    def parse(cls, value: Any) -> "SortMetric":
        """Resolve ``value`` to a metric, falling back to the default."""
        try:
            return cls(value)
        except ValueError:
            return DEFAULT_SORT_METRIC


DEFAULT_SORT_METRIC = SortMetric(constants.DEFAULT_SORT_METRIC)


class PlanningStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


def match_id(match: Any) -> Optional[str]:
    """Return the id of a match record, or None when it has none."""
    if isinstance(match, Mapping):
        value = match.get("id")
        return str(value) if value is not None else None
    return None


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_id_list(value: Any) -> List[str]:
    return [str(item) for item in _as_list(value) if item is not None]


@dataclass
class PlanProgress:
    """
    Planning-session state cached per team.

    Attributes:
        team_id: Team the cached state belongs to
        matches: Match records being planned (opaque mappings with an ``id``)
        selected_players_by_match: Tentative player selections keyed by match id
        sort_metric: Player ordering strategy
        planned_match_ids: Matches the coach finished planning
        invite_seeded_match_ids: Matches whose selection was seeded from invites
        planning_status: Derived per-match status
    """
    team_id: Optional[str] = None
    matches: List[Dict[str, Any]] = field(default_factory=list)
    selected_players_by_match: Dict[str, List[str]] = field(default_factory=dict)
    sort_metric: SortMetric = DEFAULT_SORT_METRIC
    planned_match_ids: List[str] = field(default_factory=list)
    invite_seeded_match_ids: List[str] = field(default_factory=list)
    planning_status: Dict[str, PlanningStatus] = field(default_factory=dict)

    @classmethod
    def fresh(cls, team_id: Optional[str], matches: Any = None) -> "PlanProgress":
        """Empty planning state for ``team_id`` showing ``matches``."""
        return cls(team_id=team_id, matches=[dict(m) for m in _as_list(matches) if isinstance(m, Mapping)])

    @classmethod
    def from_dict(cls, data: Any) -> "PlanProgress":
        """
        Build from a cached blob, tolerating partial or malformed data.

        Fields of the wrong type fall back to their defaults.
        """
        if not isinstance(data, Mapping):
            return cls()

        raw_selections = data.get("selectedPlayersByMatch")
        selections: Dict[str, List[str]] = {}
        if isinstance(raw_selections, Mapping):
            for key, players in raw_selections.items():
                selections[str(key)] = _as_id_list(players)

        raw_status = data.get("planningStatus")
        status: Dict[str, PlanningStatus] = {}
        if isinstance(raw_status, Mapping):
            for key, value in raw_status.items():
                try:
                    status[str(key)] = PlanningStatus(value)
                except ValueError:
                    continue

        team_id = data.get("teamId")
        return cls(
            team_id=str(team_id) if team_id is not None else None,
            matches=[dict(m) for m in _as_list(data.get("matches")) if isinstance(m, Mapping)],
            selected_players_by_match=selections,
            sort_metric=SortMetric.parse(data.get("sortMetric")),
            planned_match_ids=_as_id_list(data.get("plannedMatchIds")),
            invite_seeded_match_ids=_as_id_list(data.get("inviteSeededMatchIds")),
            planning_status=status,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the cached blob shape."""
        return {
            "teamId": self.team_id,
            "matches": [dict(m) for m in self.matches],
            "selectedPlayersByMatch": {k: list(v) for k, v in self.selected_players_by_match.items()},
            "sortMetric": self.sort_metric.value,
            "plannedMatchIds": list(self.planned_match_ids),
            "inviteSeededMatchIds": list(self.invite_seeded_match_ids),
            "planningStatus": {k: v.value for k, v in self.planning_status.items()},
        }

    def match_ids(self) -> List[str]:
        return [mid for mid in (match_id(m) for m in self.matches) if mid is not None]
