"""
Plan progress reconciliation for the match planning session.

The planning screen caches which upcoming matches are being pre-planned and
which players are tentatively selected for each. Whenever the active team or
the list of matches to plan changes, the cached state is reconciled against
the authoritative team id and match list.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from ..models import PlanProgress, PlanningStatus, SortMetric
from ..models.plan_progress import match_id
from ..utils import PLAN_MATCH_PROGRESS_KEY
from .persistence_service import PersistenceManager
from .storage import StoragePort

logger = logging.getLogger(__name__)

CachedProgress = Union[PlanProgress, Mapping[str, Any], None]


class PlanProgressError(ValueError):
    """Raised for invalid explicit updates to the planning session."""


# ----------------------------------------------------------------------
# Comparison helpers
# ----------------------------------------------------------------------
def are_match_lists_equal(first: Optional[Sequence[Any]], second: Optional[Sequence[Any]]) -> bool:
    """Compare two match lists by their ids, in order. None only equals None."""
    if first is None or second is None:
        return first is second
    return [match_id(m) for m in first] == [match_id(m) for m in second]


def are_id_lists_equal(first: Optional[Iterable[Any]], second: Optional[Iterable[Any]]) -> bool:
    return list(first or []) == list(second or [])


def are_selection_maps_equal(first: Optional[Mapping[str, Any]], second: Optional[Mapping[str, Any]]) -> bool:
    first = first or {}
    second = second or {}
    if set(first) != set(second):
        return False
    return all(list(first[key] or []) == list(second[key] or []) for key in first)


def _match_records(matches: Any) -> List[dict]:
    if not isinstance(matches, (list, tuple)):
        return []
    return [dict(m) for m in matches if isinstance(m, Mapping)]


def _coerce_progress(plan_progress: CachedProgress) -> Optional[PlanProgress]:
    if isinstance(plan_progress, PlanProgress):
        return plan_progress
    if isinstance(plan_progress, Mapping):
        return PlanProgress.from_dict(plan_progress)
    return None


def reconcile_plan_progress(
    current_team_id: Optional[Any],
    matches_to_plan: Any,
    plan_progress: CachedProgress = None,
) -> PlanProgress:
    """
    Reconcile cached planning state with the current team and match list.

    * No team selected: full reset showing ``matches_to_plan``.
    * Cached state belongs to another team (or there is none): full reset.
    * Same team: keep the cached matches when ``matches_to_plan`` is empty,
      otherwise adopt ``matches_to_plan``. Cached selections, planned ids and
      invite-seeded ids are all kept, including those for matches that are no
      longer in the list, so progress survives switching between matches and
      back. Every planned id is reported as ``done``.

    Args:
        current_team_id: Active team, or None
        matches_to_plan: Authoritative match records (mappings with ``id``)
        plan_progress: Cached state as a PlanProgress or its blob form

    Returns:
        A new PlanProgress; the inputs are not modified
    """
    incoming = _match_records(matches_to_plan)

    if not current_team_id:
        return PlanProgress.fresh(None, incoming)

    team_id = str(current_team_id)
    cached = _coerce_progress(plan_progress)
    if cached is None or cached.team_id is None or str(cached.team_id) != team_id:
        if cached is not None and cached.team_id is not None:
            logger.info("Team changed from %s to %s, resetting plan progress", cached.team_id, team_id)
        return PlanProgress.fresh(team_id, incoming)

    matches = incoming if incoming else [dict(m) for m in cached.matches]
    planned = list(cached.planned_match_ids)
    return PlanProgress(
        team_id=team_id,
        matches=matches,
        selected_players_by_match={k: list(v) for k, v in cached.selected_players_by_match.items()},
        sort_metric=cached.sort_metric,
        planned_match_ids=planned,
        invite_seeded_match_ids=list(cached.invite_seeded_match_ids),
        planning_status={mid: PlanningStatus.DONE for mid in planned},
    )


class PlanProgressService:
    """
    Keeps the cached planning session in storage consistent with the UI context.

    Args:
        storage: Storage port for the cached blob
        storage_key: Key the blob lives under
    """

    def __init__(self, storage: StoragePort, storage_key: str = PLAN_MATCH_PROGRESS_KEY):
        self.persistence = PersistenceManager(storage, storage_key, PlanProgress().to_dict())
        self._last_matches_to_plan: Optional[List[dict]] = None
        self._last_team_id: Optional[str] = None

    def load(self) -> PlanProgress:
        return PlanProgress.from_dict(self.persistence.load_state())

    def sync(self, team_id: Optional[Any], matches_to_plan: Any) -> PlanProgress:
        """
        Reconcile the cache for the current context and persist the result.

        Reconciliation is skipped while the team and ``matches_to_plan`` are
        unchanged since the previous call.
        """
        team_key = str(team_id) if team_id else None
        if team_key != self._last_team_id:
            self._last_matches_to_plan = None
            self._last_team_id = team_key

        incoming = _match_records(matches_to_plan)
        cached = self.load()

        if team_key and are_match_lists_equal(self._last_matches_to_plan, incoming):
            logger.debug("matches_to_plan unchanged, skipping reconciliation")
            return cached

        reconciled = reconcile_plan_progress(team_key, incoming, cached)
        self._last_matches_to_plan = incoming if team_key else None

        if reconciled.to_dict() != cached.to_dict():
            self.persistence.save_state(reconciled.to_dict())
        return reconciled

    # ------------------------------------------------------------------
    # Explicit updates
    # ------------------------------------------------------------------
    def set_selected_players(self, team_id: Any, match: str, player_ids: Sequence[str]) -> PlanProgress:
        progress = self._progress_for(team_id)
        progress.selected_players_by_match[str(match)] = [str(p) for p in player_ids]
        return self._save(progress)

    def set_sort_metric(self, team_id: Any, metric: Any) -> PlanProgress:
        try:
            parsed = SortMetric(metric)
        except ValueError as exc:
            raise PlanProgressError(f"Unknown sort metric: {metric!r}") from exc
        progress = self._progress_for(team_id)
        progress.sort_metric = parsed
        return self._save(progress)

    def mark_planned(self, team_id: Any, match: str) -> PlanProgress:
        progress = self._progress_for(team_id)
        if str(match) not in progress.planned_match_ids:
            progress.planned_match_ids.append(str(match))
        progress.planning_status[str(match)] = PlanningStatus.DONE
        return self._save(progress)

    def mark_invite_seeded(self, team_id: Any, match: str) -> PlanProgress:
        progress = self._progress_for(team_id)
        if str(match) not in progress.invite_seeded_match_ids:
            progress.invite_seeded_match_ids.append(str(match))
        return self._save(progress)

    def reset(self) -> None:
        self.persistence.clear_state()
        self._last_matches_to_plan = None
        self._last_team_id = None

    def _progress_for(self, team_id: Any) -> PlanProgress:
        if not team_id:
            raise PlanProgressError("A team must be selected to update plan progress")
        progress = self.load()
        if progress.team_id != str(team_id):
            progress = PlanProgress.fresh(str(team_id), progress.matches if progress.team_id is None else [])
        return progress

    def _save(self, progress: PlanProgress) -> PlanProgress:
        self.persistence.save_state(progress.to_dict())
        return progress
