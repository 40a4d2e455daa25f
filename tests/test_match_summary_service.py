"""Tests for match summaries and their CSV export."""

import csv
import io

import pytest

from matchledger.models import ValidationErrorType
from matchledger.services import MatchSummaryExporter, MatchSummaryService

GENERATED_MS = 1_700_000_000_000


def _event(event_id, event_type, timestamp, sequence, **data):
    return {"id": event_id, "type": event_type, "timestamp": timestamp, "sequence": sequence, "data": data}


@pytest.fixture
def events():
    return [
        _event("e1", "match_start", 0, 1,
               startingFormation={"goalie": "g", "leftDefender": "p1", "substitute_1": "p2"}),
        _event("e2", "substitution", 30000, 2, playersOff=["p1"], playersOn=["p2"]),
        _event("e3", "goal_scored", 40000, 3, scorerId="p2"),
        _event("e4", "goal_conceded", 45000, 4),
        _event("e5", "goal_scored", 50000, 5),
        _event("e6", "match_end", 60000, 6),
    ]


@pytest.fixture
def service():
    return MatchSummaryService(clock=lambda: GENERATED_MS)


def test_generate_summary_totals(service, events):
    summary = service.generate_summary(events)

    assert summary.generated_ts == GENERATED_MS
    assert summary.event_count == 6
    assert summary.effective_time_ms == 60000
    assert (summary.goals_scored, summary.goals_conceded) == (2, 1)
    assert summary.finished is True
    assert summary.issues == []
    assert summary.can_finalize is True

    assert [p.player_id for p in summary.players] == ["g", "p1", "p2"]
    goalie = summary.players[0]
    assert goalie.time_as_goalie == 60000
    assert goalie.share_of_match == pytest.approx(1.0)
    assert summary.players[2].time_as_defender == 30000


def test_share_of_match_is_capped_when_pauses_shrink_effective_time(service):
    events = [
        _event("e1", "match_start", 0, 1, startingFormation={"goalie": "g", "substitute_1": "s"}),
        _event("e2", "timer_paused", 30000, 2),
        _event("e3", "timer_resumed", 45000, 3),
        _event("e4", "match_end", 75000, 4),
    ]
    summary = service.generate_summary(events)

    assert summary.effective_time_ms == 60000
    goalie = next(p for p in summary.players if p.player_id == "g")
    assert goalie.time_as_goalie == 75000
    assert goalie.share_of_match == pytest.approx(1.0)
    assert all(0.0 <= p.share_of_match <= 1.0 for p in summary.players)


def test_structural_issues_block_finalization(service, events):
    events.append(dict(events[2]))
    summary = service.generate_summary(events)

    assert any(issue.type is ValidationErrorType.DUPLICATE_EVENT for issue in summary.issues)
    assert summary.can_finalize is False


def test_schema_warnings_do_not_block_finalization(service, events):
    events.insert(5, _event("e5b", "mystery", 55000, 6))
    events[-1]["sequence"] = 7
    summary = service.generate_summary(events)

    assert [issue.type for issue in summary.issues] == [ValidationErrorType.CORRUPTED_EVENT]
    assert summary.can_finalize is True


def test_non_list_log(service):
    summary = service.generate_summary({"events": []})

    assert summary.event_count == 0
    assert summary.players == []
    assert summary.can_finalize is False


def test_export_to_csv(service, events):
    csv_text = service.export_summary_csv(events)
    rows = list(csv.reader(io.StringIO(csv_text)))

    assert rows[0] == ["Match Summary"]
    assert rows[1] == ["Generated", "2023-11-14T22:13:20+00:00"]
    assert ["Effective Time", "01:00"] in rows
    assert ["Score", "2-1"] in rows
    assert ["Can Finalize", "yes"] in rows

    header_index = rows.index([
        "Player", "On Field", "Goalie", "Defender", "Midfielder",
        "Attacker", "Substitute", "Share (%)",
    ])
    goalie_row = rows[header_index + 1]
    assert goalie_row == ["g", "01:00", "01:00", "00:00", "00:00", "00:00", "00:00", "100.0"]


def test_custom_exporter_is_used(events):
    class UpperExporter(MatchSummaryExporter):
        def export_to_csv(self, summary):
            return super().export_to_csv(summary).upper()

    service = MatchSummaryService(clock=lambda: GENERATED_MS, export_service=UpperExporter())
    assert service.export_summary_csv(events).startswith("MATCH SUMMARY")


def test_summary_to_dict(service, events):
    payload = MatchSummaryService.summary_to_dict(service.generate_summary(events))

    assert payload["effectiveTimeMs"] == 60000
    assert payload["canFinalize"] is True
    assert payload["players"][0]["playerId"] == "g"
    assert payload["players"][0]["timeAsGoalie"] == 60000
