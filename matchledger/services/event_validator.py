"""
Event log validation service for detecting integrity problems.

This module inspects a candidate event log for chronological, structural and
uniqueness problems. Each check is a separate rule; the orchestrating
:func:`validate_match_data` runs all of them and concatenates their issues so
that simultaneous problems are all reported.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..models import (
    EventDecodeError, MatchEvent, PlayerTimeTotals, Severity,
    ValidationError, ValidationErrorType, is_known_event_type
)
from ..models.match_event import EventType, decode_payload, is_valid_timestamp
from ..utils import Clock, PLAYER_TIME_TOLERANCE_SECONDS, TIME_TOLERANCE_MS
from .time_accounting import calculate_effective_playing_time

logger = logging.getLogger(__name__)


def _as_record(event: Any) -> Any:
    """Validate MatchEvent instances in their persisted shape."""
    return event.to_dict() if isinstance(event, MatchEvent) else event


def _records(events: Any) -> List[Any]:
    return [_as_record(event) for event in events]


def _field(record: Any, key: str) -> Any:
    return record.get(key) if isinstance(record, Mapping) else None


# ----------------------------------------------------------------------
# Individual checks
# ----------------------------------------------------------------------
def events_are_chronological(events: Any) -> bool:
    """
    Check that timestamps never decrease in array order.

    This inspects the raw order of the log, not a re-sort by sequence.
    ``None``, empty and single-event logs are chronological. Entries without
    a numeric timestamp are skipped.
    """
    if not isinstance(events, (list, tuple)) or len(events) <= 1:
        return True

    previous: Optional[float] = None
    for record in _records(events):
        timestamp = _field(record, "timestamp")
        if not is_valid_timestamp(timestamp):
            continue
        if previous is not None and timestamp < previous:
            return False
        previous = timestamp
    return True


def has_sequence_gaps(events: Any) -> bool:
    """
    Check whether the sorted sequence numbers skip any integer.

    Logs of length one or less never have gaps. Entries without a numeric
    sequence are ignored.
    """
    if not isinstance(events, (list, tuple)) or len(events) <= 1:
        return False

    sequences = sorted(
        _field(record, "sequence")
        for record in _records(events)
        if is_valid_timestamp(_field(record, "sequence"))
    )
    return any(current - previous > 1 for previous, current in zip(sequences, sequences[1:]))


def find_duplicate_events(events: Any) -> List[Any]:
    """
    Return every event whose id already appeared earlier in the log.

    The first occurrence of an id is not included, so an id present three
    times contributes two entries. Events without an id are not considered.
    """
    if not isinstance(events, (list, tuple)):
        return []

    duplicates: List[Any] = []
    seen_ids = set()
    for event in events:
        event_id = _field(_as_record(event), "id")
        if not event_id or not isinstance(event_id, (str, int)):
            continue
        if event_id in seen_ids:
            duplicates.append(event)
        else:
            seen_ids.add(event_id)
    return duplicates


# ----------------------------------------------------------------------
# Rules
# ----------------------------------------------------------------------
class ValidationRule(ABC):
    """Abstract base class for event log validation rules."""

    @abstractmethod
    def validate(self, events: List[Any]) -> List[ValidationError]:
        """Inspect ``events`` and return the issues found."""


class ChronologyRule(ValidationRule):
    """Flags logs whose timestamps go backwards in array order."""

    def validate(self, events: List[Any]) -> List[ValidationError]:
        if events_are_chronological(events):
            return []
        return [ValidationError(
            type=ValidationErrorType.CHRONOLOGY,
            severity=Severity.WARNING,
            detail="Events not in chronological order",
        )]


class DuplicateEventRule(ValidationRule):
    """Flags each repeated occurrence of an event id."""

    def validate(self, events: List[Any]) -> List[ValidationError]:
        issues = []
        for duplicate in find_duplicate_events(events):
            event_id = str(_field(_as_record(duplicate), "id"))
            issues.append(ValidationError(
                type=ValidationErrorType.DUPLICATE_EVENT,
                severity=Severity.WARNING,
                detail=f"Duplicate event id {event_id}",
                event_id=event_id,
            ))
        return issues


class SequenceGapRule(ValidationRule):
    """Flags logs whose sequence numbers are not contiguous."""

    def validate(self, events: List[Any]) -> List[ValidationError]:
        if not has_sequence_gaps(events):
            return []
        return [ValidationError(
            type=ValidationErrorType.SEQUENCE_GAP,
            severity=Severity.WARNING,
            detail="Gaps found in event sequence numbers",
        )]


class EventSchemaRule(ValidationRule):
    """Flags individual malformed events; several issues may hit one event."""

    def validate(self, events: List[Any]) -> List[ValidationError]:
        issues: List[ValidationError] = []
        for index, record in enumerate(_records(events)):
            if not isinstance(record, Mapping):
                issues.append(self._corrupted(index, None, "is not an object"))
                continue

            event_id = record.get("id")
            event_id = str(event_id) if event_id else None
            if event_id is None:
                issues.append(ValidationError(
                    type=ValidationErrorType.MISSING_DATA,
                    severity=Severity.WARNING,
                    detail=f"Event at index {index} missing id",
                    index=index,
                ))

            event_type = record.get("type")
            if not is_known_event_type(event_type):
                issues.append(self._corrupted(index, event_id, f"has invalid type: {event_type!r}"))
            else:
                try:
                    decode_payload(EventType.parse(event_type), record.get("data"))
                except EventDecodeError as exc:
                    issues.append(self._corrupted(index, event_id, f"has malformed data: {exc}"))

            if not is_valid_timestamp(record.get("timestamp")):
                issues.append(self._corrupted(index, event_id, "has invalid timestamp"))
        return issues

    @staticmethod
    def _corrupted(index: int, event_id: Optional[str], problem: str) -> ValidationError:
        return ValidationError(
            type=ValidationErrorType.CORRUPTED_EVENT,
            severity=Severity.WARNING,
            detail=f"Event at index {index} {problem}",
            event_id=event_id,
            index=index,
        )


class EffectiveTimeRule(ValidationRule):
    """Compares the recomputed effective time with a previously recorded one."""

    def __init__(self, expected_ms: Optional[int], clock: Optional[Clock] = None,
                 tolerance_ms: int = TIME_TOLERANCE_MS):
        self.expected_ms = expected_ms
        self.clock = clock
        self.tolerance_ms = tolerance_ms

    def validate(self, events: List[Any]) -> List[ValidationError]:
        if not self.expected_ms:
            return []
        calculated = calculate_effective_playing_time(events, clock=self.clock)
        if abs(calculated - self.expected_ms) <= self.tolerance_ms:
            return []
        return [ValidationError(
            type=ValidationErrorType.TIME_INCONSISTENCY,
            severity=Severity.WARNING,
            detail=(
                f"Playing time calculation inconsistent: calculated {calculated}ms, "
                f"expected {self.expected_ms}ms"
            ),
        )]


def _expected_effective_time(prior_state: Any) -> Optional[int]:
    if not isinstance(prior_state, Mapping):
        return None
    value = prior_state.get("totalEffectiveTime")
    return int(value) if is_valid_timestamp(value) else None


def validate_match_data(
    events: Any, prior_state: Any = None, clock: Optional[Clock] = None
) -> List[ValidationError]:
    """
    Run every integrity check over a candidate event log.

    Args:
        events: Candidate log, usually straight from a persisted blob
        prior_state: Optional previously recorded state; when it carries
            ``totalEffectiveTime`` (ms) the recomputed time is compared to it
        clock: Clock used when recomputing time for a log without MATCH_END

    Returns:
        All issues found, in rule order. A non-list input yields a single
        critical CORRUPTED_EVENT and no further checks run.
    """
    if not isinstance(events, (list, tuple)):
        return [ValidationError(
            type=ValidationErrorType.CORRUPTED_EVENT,
            severity=Severity.CRITICAL,
            detail="Events is not an array",
        )]

    events = list(events)
    rules: List[ValidationRule] = [
        ChronologyRule(),
        SequenceGapRule(),
        DuplicateEventRule(),
        EffectiveTimeRule(_expected_effective_time(prior_state), clock=clock),
        EventSchemaRule(),
    ]

    issues: List[ValidationError] = []
    for rule in rules:
        issues.extend(rule.validate(events))

    if issues:
        logger.info("Event log validation found %d issue(s)", len(issues))
    return issues


# ----------------------------------------------------------------------
# Player time consistency (called by finalisation flows)
# ----------------------------------------------------------------------
_RECORDED_FIELDS = (
    ("time_on_field", "timeOnFieldSeconds"),
    ("time_as_goalie", "timeAsGoalieSeconds"),
    ("time_as_defender", "timeAsDefenderSeconds"),
    ("time_as_midfielder", "timeAsMidfielderSeconds"),
    ("time_as_attacker", "timeAsAttackerSeconds"),
    ("time_as_substitute", "timeAsSubSeconds"),
)


def find_player_time_mismatches(
    calculated: Optional[Dict[str, PlayerTimeTotals]],
    recorded_players: Optional[Iterable[Mapping[str, Any]]],
    tolerance_seconds: float = PLAYER_TIME_TOLERANCE_SECONDS,
) -> List[ValidationError]:
    """
    Compare engine totals (ms) with recorded per-player stats (seconds).

    Args:
        calculated: Output of ``calculate_player_time_totals``
        recorded_players: Records shaped ``{"id": ..., "stats": {...Seconds}}``
        tolerance_seconds: Allowed absolute difference per field

    Returns:
        One PLAYER_TIME_MISMATCH per mismatching player and field, or a
        single mismatch when either side is missing or only one side is empty.
    """
    if calculated is None or recorded_players is None:
        return [ValidationError(
            type=ValidationErrorType.PLAYER_TIME_MISMATCH,
            severity=Severity.WARNING,
            detail="Player time data missing",
        )]

    players = [p for p in recorded_players if isinstance(p, Mapping)]
    if not calculated and not players:
        return []
    if not calculated or not players:
        return [ValidationError(
            type=ValidationErrorType.PLAYER_TIME_MISMATCH,
            severity=Severity.WARNING,
            detail="Player time data present on only one side",
        )]

    issues: List[ValidationError] = []
    for player in players:
        player_id = str(player.get("id"))
        totals = calculated.get(player_id) or PlayerTimeTotals()
        stats = player.get("stats") if isinstance(player.get("stats"), Mapping) else {}

        for attribute, stats_key in _RECORDED_FIELDS:
            computed_seconds = getattr(totals, attribute) / 1000
            recorded_value = stats.get(stats_key) or 0
            recorded_seconds = recorded_value if is_valid_timestamp(recorded_value) else 0
            if abs(computed_seconds - recorded_seconds) > tolerance_seconds:
                logger.warning(
                    "%s mismatch for player %s: calculated %ss, recorded %ss",
                    stats_key, player_id, computed_seconds, recorded_seconds,
                )
                issues.append(ValidationError(
                    type=ValidationErrorType.PLAYER_TIME_MISMATCH,
                    severity=Severity.WARNING,
                    detail=(
                        f"{stats_key} for player {player_id}: calculated "
                        f"{computed_seconds:.0f}s, recorded {recorded_seconds}s"
                    ),
                ))
    return issues


def validate_player_time_consistency(
    calculated: Optional[Dict[str, PlayerTimeTotals]],
    recorded_players: Optional[Iterable[Mapping[str, Any]]],
    tolerance_seconds: float = PLAYER_TIME_TOLERANCE_SECONDS,
) -> bool:
    """Return True when engine totals agree with the recorded player stats."""
    return not find_player_time_mismatches(calculated, recorded_players, tolerance_seconds)
