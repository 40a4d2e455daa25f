"""Tests for plan progress reconciliation."""

import copy
import json

import pytest

from matchledger.models import PlanProgress, PlanningStatus, SortMetric
from matchledger.services import (
    InMemoryStorage, PlanProgressError, PlanProgressService,
    are_id_lists_equal, are_match_lists_equal, are_selection_maps_equal,
    reconcile_plan_progress
)
from matchledger.utils import PLAN_MATCH_PROGRESS_KEY

M1 = {"id": "m1", "opponent": "Lions"}
M2 = {"id": "m2", "opponent": "Tigers"}
M3 = {"id": "m3", "opponent": "Bears"}


def _cached(team_id="t1", **overrides):
    progress = {
        "teamId": team_id,
        "matches": [M1, M2],
        "selectedPlayersByMatch": {"m1": ["p1", "p2"], "m2": ["p3"]},
        "sortMetric": "attendance",
        "plannedMatchIds": ["m1"],
        "inviteSeededMatchIds": ["m2"],
        "planningStatus": {"m1": "done"},
    }
    progress.update(overrides)
    return progress


def test_no_team_resets_everything():
    result = reconcile_plan_progress(None, [M3], _cached())

    assert result.team_id is None
    assert result.matches == [M3]
    assert result.selected_players_by_match == {}
    assert result.planned_match_ids == []
    assert result.invite_seeded_match_ids == []
    assert result.planning_status == {}
    assert result.sort_metric is SortMetric.PRACTICES


def test_team_switch_resets_everything():
    result = reconcile_plan_progress("t2", [M3], _cached())

    assert result.to_dict() == PlanProgress.fresh("t2", [M3]).to_dict()


def test_missing_cache_with_team_is_fresh_state():
    result = reconcile_plan_progress("t1", [M1], None)
    assert result.team_id == "t1"
    assert result.matches == [M1]
    assert result.selected_players_by_match == {}


def test_same_team_keeps_cached_matches_when_none_to_plan():
    result = reconcile_plan_progress("t1", [], _cached())

    assert result.matches == [M1, M2]
    assert result.selected_players_by_match == {"m1": ["p1", "p2"], "m2": ["p3"]}
    assert result.sort_metric is SortMetric.ATTENDANCE
    assert result.planning_status == {"m1": PlanningStatus.DONE}


def test_same_team_adopts_new_matches_and_keeps_progress():
    result = reconcile_plan_progress("t1", [M2, M3], _cached())

    assert result.matches == [M2, M3]
    assert result.selected_players_by_match["m2"] == ["p3"]
    assert result.invite_seeded_match_ids == ["m2"]


def test_selections_for_matches_no_longer_listed_are_retained():
    cached = _cached()

    switched = reconcile_plan_progress("t1", [M2], cached)
    assert switched.selected_players_by_match["m1"] == ["p1", "p2"]
    assert switched.planned_match_ids == ["m1"]
    assert switched.planning_status == {"m1": PlanningStatus.DONE}

    back = reconcile_plan_progress("t1", [M1, M2], switched)
    assert back.selected_players_by_match == {"m1": ["p1", "p2"], "m2": ["p3"]}


def test_team_ids_compare_as_strings():
    result = reconcile_plan_progress(7, [], _cached(team_id="7"))
    assert result.team_id == "7"
    assert result.selected_players_by_match["m2"] == ["p3"]


def test_inputs_are_not_mutated():
    cached = _cached()
    snapshot = copy.deepcopy(cached)
    matches = [M3]

    result = reconcile_plan_progress("t1", matches, cached)
    result.selected_players_by_match["m1"].append("p9")

    assert cached == snapshot
    assert matches == [M3]


def test_malformed_cache_is_tolerated():
    result = reconcile_plan_progress("t1", [M1], {"teamId": "t1", "matches": "oops", "sortMetric": "nope"})
    assert result.matches == [M1]
    assert result.sort_metric is SortMetric.PRACTICES


def test_comparison_helpers():
    assert are_match_lists_equal([M1, M2], [{"id": "m1"}, {"id": "m2"}])
    assert not are_match_lists_equal([M1, M2], [M2, M1])
    assert not are_match_lists_equal(None, [])
    assert are_match_lists_equal(None, None)

    assert are_id_lists_equal(None, [])
    assert not are_id_lists_equal(["a"], ["b"])

    assert are_selection_maps_equal({"m1": ["p1"]}, {"m1": ["p1"]})
    assert not are_selection_maps_equal({"m1": ["p1"]}, {"m1": ["p2"]})
    assert not are_selection_maps_equal({"m1": []}, {})


class TestPlanProgressService:
    def setup_method(self):
        self.storage = InMemoryStorage()
        self.service = PlanProgressService(self.storage)

    def _stored(self):
        return json.loads(self.storage.get(PLAN_MATCH_PROGRESS_KEY))

    def test_sync_persists_reconciled_state(self):
        progress = self.service.sync("t1", [M1])

        assert progress.team_id == "t1"
        assert self._stored()["matches"] == [M1]

    def test_unchanged_matches_skip_reconciliation(self):
        self.service.sync("t1", [M1])
        self.service.set_selected_players("t1", "m1", ["p1"])

        progress = self.service.sync("t1", [M1])

        assert progress.selected_players_by_match == {"m1": ["p1"]}

    def test_team_switch_resets_cache(self):
        self.service.sync("t1", [M1])
        self.service.set_selected_players("t1", "m1", ["p1"])

        progress = self.service.sync("t2", [M3])

        assert progress.selected_players_by_match == {}
        assert self._stored()["teamId"] == "t2"

    def test_explicit_updates(self):
        self.service.sync("t1", [M1, M2])
        self.service.mark_planned("t1", "m2")
        self.service.mark_invite_seeded("t1", "m1")
        progress = self.service.set_sort_metric("t1", "attendance")

        assert progress.planned_match_ids == ["m2"]
        assert progress.invite_seeded_match_ids == ["m1"]
        assert progress.planning_status == {"m2": PlanningStatus.DONE}
        assert self._stored()["sortMetric"] == "attendance"

    def test_invalid_updates_raise(self):
        with pytest.raises(PlanProgressError):
            self.service.set_sort_metric("t1", "height")
        with pytest.raises(PlanProgressError):
            self.service.set_selected_players(None, "m1", ["p1"])

    def test_reset_clears_storage(self):
        self.service.sync("t1", [M1])
        self.service.reset()

        assert self.storage.get(PLAN_MATCH_PROGRESS_KEY) is None
        assert self.service.load().to_dict() == PlanProgress().to_dict()
