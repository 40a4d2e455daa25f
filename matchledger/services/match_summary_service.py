"""Match summary helpers built on top of the event log engine."""

from __future__ import annotations

import csv
import datetime as dt
import io
from typing import Any, Dict, List, Optional, Protocol

from ..models import EventType, MatchSummary, PlayerTimeSummary, Severity, ValidationErrorType
from ..utils import Clock, fmt_ms_mmss, resolve_clock
from .event_validator import validate_match_data
from .time_accounting import (
    calculate_effective_playing_time, calculate_period_durations,
    calculate_player_time_totals, replay_order
)

BLOCKING_ISSUE_TYPES = frozenset({
    ValidationErrorType.CHRONOLOGY,
    ValidationErrorType.DUPLICATE_EVENT,
    ValidationErrorType.SEQUENCE_GAP,
})


class ExportServiceInterface(Protocol):
    """Interface for summary export - supports ISP."""

    def export_to_csv(self, summary: MatchSummary) -> str:
        """Export summary to CSV format."""
        ...


class MatchSummaryExporter:
    """Renders a :class:`MatchSummary` as CSV."""

    def export_to_csv(self, summary: MatchSummary) -> str:
        """Return a CSV document with match totals followed by a player table."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")

        generated_dt = dt.datetime.fromtimestamp(summary.generated_ts / 1000, tz=dt.timezone.utc)
        writer.writerow(["Match Summary"])
        writer.writerow(["Generated", generated_dt.isoformat(timespec="seconds")])
        writer.writerow(["Events", summary.event_count])
        writer.writerow(["Effective Time", fmt_ms_mmss(summary.effective_time_ms)])
        for period, duration in sorted(summary.period_durations.items()):
            writer.writerow([f"Period {period}", fmt_ms_mmss(duration)])
        writer.writerow(["Score", f"{summary.goals_scored}-{summary.goals_conceded}"])
        writer.writerow(["Finished", "yes" if summary.finished else "no"])
        writer.writerow(["Issues", len(summary.issues)])
        writer.writerow(["Can Finalize", "yes" if summary.can_finalize else "no"])
        writer.writerow([])

        writer.writerow([
            "Player", "On Field", "Goalie", "Defender", "Midfielder",
            "Attacker", "Substitute", "Share (%)",
        ])
        for player in summary.players:
            writer.writerow([
                player.player_id,
                fmt_ms_mmss(player.time_on_field),
                fmt_ms_mmss(player.time_as_goalie),
                fmt_ms_mmss(player.time_as_defender),
                fmt_ms_mmss(player.time_as_midfielder),
                fmt_ms_mmss(player.time_as_attacker),
                fmt_ms_mmss(player.time_as_substitute),
                round(player.share_of_match * 100, 1),
            ])

        csv_text = buffer.getvalue()
        buffer.close()
        return csv_text


class MatchSummaryService:
    """
    Derive a match summary from a raw event log.

    Uses dependency injection for the clock and the exporter.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        export_service: Optional[ExportServiceInterface] = None,
    ) -> None:
        self.clock = resolve_clock(clock)
        self.export_service = export_service or MatchSummaryExporter()

    def generate_summary(self, events: Any, prior_state: Any = None) -> MatchSummary:
        """
        Build a :class:`MatchSummary` snapshot for ``events``.

        Malformed input never raises: issues are reported in the summary and
        only decodable events contribute to the totals.
        """
        issues = validate_match_data(events, prior_state=prior_state, clock=self.clock)
        ordered = replay_order(events) if isinstance(events, (list, tuple)) else []

        effective = calculate_effective_playing_time(ordered, clock=self.clock)
        totals = calculate_player_time_totals(ordered, clock=self.clock)

        players: List[PlayerTimeSummary] = []
        for player_id, player_totals in totals.items():
            # stints run on raw timestamps while effective time excludes pauses
            share = min(1.0, player_totals.time_on_field / effective) if effective > 0 else 0.0
            players.append(PlayerTimeSummary(
                player_id=player_id,
                time_on_field=player_totals.time_on_field,
                time_as_defender=player_totals.time_as_defender,
                time_as_midfielder=player_totals.time_as_midfielder,
                time_as_attacker=player_totals.time_as_attacker,
                time_as_goalie=player_totals.time_as_goalie,
                time_as_substitute=player_totals.time_as_substitute,
                share_of_match=share,
            ))
        players.sort(key=lambda item: (-item.time_on_field, item.player_id))

        can_finalize = not any(
            issue.severity == Severity.CRITICAL or issue.type in BLOCKING_ISSUE_TYPES
            for issue in issues
        )

        return MatchSummary(
            generated_ts=self.clock(),
            event_count=len(ordered),
            effective_time_ms=effective,
            period_durations=calculate_period_durations(ordered, clock=self.clock),
            goals_scored=sum(1 for e in ordered if e.type == EventType.GOAL_SCORED),
            goals_conceded=sum(1 for e in ordered if e.type == EventType.GOAL_CONCEDED),
            finished=any(e.type == EventType.MATCH_END for e in ordered),
            players=players,
            issues=issues,
            can_finalize=can_finalize,
        )

    def export_summary_csv(self, events: Any, prior_state: Any = None) -> str:
        return self.export_service.export_to_csv(self.generate_summary(events, prior_state))

    @staticmethod
    def summary_to_dict(summary: MatchSummary) -> Dict[str, Any]:
        """Convert a summary to its JSON shape."""
        return {
            "generatedTs": summary.generated_ts,
            "eventCount": summary.event_count,
            "effectiveTimeMs": summary.effective_time_ms,
            "periodDurations": {str(k): v for k, v in summary.period_durations.items()},
            "goalsScored": summary.goals_scored,
            "goalsConceded": summary.goals_conceded,
            "finished": summary.finished,
            "canFinalize": summary.can_finalize,
            "issues": [issue.to_dict() for issue in summary.issues],
            "players": [
                {
                    "playerId": p.player_id,
                    "timeOnField": p.time_on_field,
                    "timeAsGoalie": p.time_as_goalie,
                    "timeAsDefender": p.time_as_defender,
                    "timeAsMidfielder": p.time_as_midfielder,
                    "timeAsAttacker": p.time_as_attacker,
                    "timeAsSub": p.time_as_substitute,
                    "shareOfMatch": round(p.share_of_match, 4),
                }
                for p in summary.players
            ],
        }
