"""
MatchEvent model for the match ledger engine.

A live match is recorded as an ordered log of :class:`MatchEvent` records.
Every event carries a typed payload selected by its :class:`EventType`; the
payload classes below are the only place where the wire (camelCase JSON) shape
of an event is interpreted.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, Union

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Enumerated match event types (values are the persisted wire strings)."""

    # Core match events
    MATCH_START = "match_start"
    MATCH_END = "match_end"
    MATCH_ABANDONED = "match_abandoned"
    MATCH_SUSPENDED = "match_suspended"

    # Period events
    PERIOD_START = "period_start"
    PERIOD_END = "period_end"
    PERIOD_PAUSED = "period_paused"
    PERIOD_RESUMED = "period_resumed"
    INTERMISSION = "intermission"

    # Player events
    SUBSTITUTION = "substitution"
    SUBSTITUTION_UNDONE = "substitution_undone"
    GOALIE_SWITCH = "goalie_switch"
    GOALIE_ASSIGNMENT = "goalie_assignment"
    POSITION_SWITCH = "position_switch"
    SUB_ORDER_CHANGED = "sub_order_changed"
    PLAYER_INACTIVATED = "player_inactivated"
    PLAYER_REACTIVATED = "player_reactivated"
    FAIR_PLAY_AWARD = "fair_play_award"

    # Scoring events
    GOAL_SCORED = "goal_scored"
    GOAL_CONCEDED = "goal_conceded"
    GOAL_CORRECTED = "goal_corrected"
    GOAL_UNDONE = "goal_undone"

    # Timer events
    TIMER_PAUSED = "timer_paused"
    TIMER_RESUMED = "timer_resumed"
    TECHNICAL_TIMEOUT = "technical_timeout"

    @classmethod
    def parse(cls, value: Any) -> Optional["EventType"]:
        """Resolve a wire value or member name to an EventType, else None."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value:
            return None
        try:
            return cls(value)
        except ValueError:
            pass
        return cls.__members__.get(value.upper())


PAUSE_EVENT_TYPES = frozenset({EventType.TIMER_PAUSED, EventType.PERIOD_PAUSED})
RESUME_EVENT_TYPES = frozenset({EventType.TIMER_RESUMED, EventType.PERIOD_RESUMED})


def is_known_event_type(value: Any) -> bool:
    """Return True when ``value`` names a recognised event type."""
    return EventType.parse(value) is not None


def _is_number(value: Any) -> bool:
    # NaN and infinities arrive from json.loads("NaN" / "1e999") and cannot become ints
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def is_valid_timestamp(value: Any) -> bool:
    """Timestamps are finite epoch milliseconds; bools are not numbers here."""
    return _is_number(value)


class EventDecodeError(ValueError):
    """Raised when a raw record cannot be decoded into a MatchEvent."""


# ----------------------------------------------------------------------
# Payload decoding helpers
# ----------------------------------------------------------------------
def _id_list(data: Mapping[str, Any], key: str) -> List[str]:
    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise EventDecodeError(f"'{key}' must be a list of player ids")
    return [str(item) for item in raw if item is not None]


def _str_map(data: Mapping[str, Any], key: str) -> Dict[str, str]:
    raw = data.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise EventDecodeError(f"'{key}' must be an object")
    return {str(k): str(v) for k, v in raw.items() if v is not None}


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, (dict, list)):
        raise EventDecodeError(f"'{key}' must be a scalar id")
    return str(value)


def _optional_int(data: Mapping[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if not _is_number(value):
        raise EventDecodeError(f"'{key}' must be a finite number")
    return int(value)


# ----------------------------------------------------------------------
# Payload variants
# ----------------------------------------------------------------------
@dataclass
class MatchStartData:
    """Starting formation ``{positionKey: playerId}`` and ``{playerId: role}``."""
    starting_formation: Dict[str, str] = field(default_factory=dict)
    player_roles: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchStartData":
        return cls(
            starting_formation=_str_map(data, "startingFormation"),
            player_roles=_str_map(data, "playerRoles"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startingFormation": dict(self.starting_formation),
            "playerRoles": dict(self.player_roles),
        }


@dataclass
class MatchEndData:
    final_score: Optional[Dict[str, int]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatchEndData":
        score = data.get("finalScore")
        if score is not None and not isinstance(score, Mapping):
            raise EventDecodeError("'finalScore' must be an object")
        return cls(final_score=dict(score) if score is not None else None)

    def to_dict(self) -> Dict[str, Any]:
        if self.final_score is None:
            return {}
        return {"finalScore": dict(self.final_score)}


@dataclass
class SubstitutionData:
    """Players leaving and joining the field; ``new_roles`` keys are player ids."""
    players_off: List[str] = field(default_factory=list)
    players_on: List[str] = field(default_factory=list)
    new_roles: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubstitutionData":
        return cls(
            players_off=_id_list(data, "playersOff"),
            players_on=_id_list(data, "playersOn"),
            new_roles=_str_map(data, "newRoles"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playersOff": list(self.players_off),
            "playersOn": list(self.players_on),
            "newRoles": dict(self.new_roles),
        }


@dataclass
class GoalieSwitchData:
    old_goalie: Optional[str] = None
    new_goalie: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GoalieSwitchData":
        return cls(
            old_goalie=_optional_str(data, "oldGoalie"),
            new_goalie=_optional_str(data, "newGoalie"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"oldGoalie": self.old_goalie, "newGoalie": self.new_goalie}


@dataclass
class PositionSwitchData:
    """Two players trading slots; each new position is a formation key."""
    player1_id: Optional[str] = None
    player2_id: Optional[str] = None
    player1_new_position: Optional[str] = None
    player2_new_position: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PositionSwitchData":
        return cls(
            player1_id=_optional_str(data, "player1Id"),
            player2_id=_optional_str(data, "player2Id"),
            player1_new_position=_optional_str(data, "player1NewPosition"),
            player2_new_position=_optional_str(data, "player2NewPosition"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player1Id": self.player1_id,
            "player2Id": self.player2_id,
            "player1NewPosition": self.player1_new_position,
            "player2NewPosition": self.player2_new_position,
        }

    def moves(self) -> List[tuple]:
        """(player_id, new_position) pairs for the players actually named."""
        pairs = [
            (self.player1_id, self.player1_new_position),
            (self.player2_id, self.player2_new_position),
        ]
        return [(pid, pos) for pid, pos in pairs if pid]


@dataclass
class PlayerStatusData:
    player_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerStatusData":
        return cls(player_id=_optional_str(data, "playerId"))

    def to_dict(self) -> Dict[str, Any]:
        return {"playerId": self.player_id}


@dataclass
class GoalData:
    scorer_id: Optional[str] = None
    home_score: Optional[int] = None
    away_score: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GoalData":
        return cls(
            scorer_id=_optional_str(data, "scorerId"),
            home_score=_optional_int(data, "homeScore"),
            away_score=_optional_int(data, "awayScore"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.scorer_id is not None:
            payload["scorerId"] = self.scorer_id
        if self.home_score is not None:
            payload["homeScore"] = self.home_score
        if self.away_score is not None:
            payload["awayScore"] = self.away_score
        return payload


@dataclass
class PeriodData:
    period_number: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PeriodData":
        return cls(period_number=_optional_int(data, "periodNumber"))

    def to_dict(self) -> Dict[str, Any]:
        if self.period_number is None:
            return {}
        return {"periodNumber": self.period_number}


@dataclass
class GenericData:
    """Opaque payload for event types the engine does not interpret."""
    values: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GenericData":
        return cls(values=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.values)


EventPayload = Union[
    MatchStartData, MatchEndData, SubstitutionData, GoalieSwitchData,
    PositionSwitchData, PlayerStatusData, GoalData, PeriodData, GenericData,
]

PAYLOAD_TYPES: Dict[EventType, Type] = {
    EventType.MATCH_START: MatchStartData,
    EventType.MATCH_END: MatchEndData,
    EventType.SUBSTITUTION: SubstitutionData,
    EventType.GOALIE_SWITCH: GoalieSwitchData,
    EventType.POSITION_SWITCH: PositionSwitchData,
    EventType.PLAYER_INACTIVATED: PlayerStatusData,
    EventType.PLAYER_REACTIVATED: PlayerStatusData,
    EventType.GOAL_SCORED: GoalData,
    EventType.GOAL_CONCEDED: GoalData,
    EventType.PERIOD_START: PeriodData,
    EventType.PERIOD_END: PeriodData,
}


def decode_payload(event_type: EventType, data: Any) -> EventPayload:
    """Decode the ``data`` field of an event of ``event_type``."""
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise EventDecodeError(f"{event_type.value} payload must be an object")
    payload_cls = PAYLOAD_TYPES.get(event_type, GenericData)
    return payload_cls.from_dict(data)


@dataclass
class MatchEvent:
    """
    A single entry of the match event log.

    Attributes:
        id: Unique event identifier
        type: Event type
        timestamp: Wall clock time of the event in epoch milliseconds
        sequence: Position in the log as assigned by the writer
        period: Period number the event belongs to
        data: Typed payload for ``type``
    """
    id: str
    type: EventType
    timestamp: int
    sequence: int = 0
    period: int = 1
    data: EventPayload = field(default_factory=GenericData)

    @classmethod
    def from_dict(cls, raw: Any) -> "MatchEvent":
        """
        Decode a persisted event record.

        Args:
            raw: Mapping in the persisted JSON shape

        Returns:
            New MatchEvent instance

        Raises:
            EventDecodeError: If the record is structurally invalid
        """
        if not isinstance(raw, Mapping):
            raise EventDecodeError("Event record must be an object")

        event_id = raw.get("id")
        if not event_id:
            raise EventDecodeError("Event record is missing an id")

        event_type = EventType.parse(raw.get("type"))
        if event_type is None:
            raise EventDecodeError(f"Unknown event type: {raw.get('type')!r}")

        timestamp = raw.get("timestamp")
        if not is_valid_timestamp(timestamp):
            raise EventDecodeError(f"Event {event_id} has an invalid timestamp")

        sequence = raw.get("sequence", 0)
        period = raw.get("period", 1)
        return cls(
            id=str(event_id),
            type=event_type,
            timestamp=int(timestamp),
            sequence=int(sequence) if _is_number(sequence) else 0,
            period=int(period) if _is_number(period) else 1,
            data=decode_payload(event_type, raw.get("data")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp,
            "sequence": self.sequence,
            "period": self.period,
            "data": self.data.to_dict(),
        }


def decode_events(records: Any) -> List[MatchEvent]:
    """
    Decode a list of raw records, skipping the ones that cannot be decoded.

    Already-decoded :class:`MatchEvent` instances pass through unchanged.
    Non-list input decodes to an empty list.
    """
    if not isinstance(records, (list, tuple)):
        return []

    events: List[MatchEvent] = []
    for index, record in enumerate(records):
        if isinstance(record, MatchEvent):
            events.append(record)
            continue
        try:
            events.append(MatchEvent.from_dict(record))
        except EventDecodeError as exc:
            logger.warning("Skipping event at index %d: %s", index, exc)
    return events


def events_to_dicts(events: Iterable[Union[MatchEvent, Mapping[str, Any]]]) -> List[Any]:
    """Return the persisted shape for a mixed list of events and records."""
    return [e.to_dict() if isinstance(e, MatchEvent) else e for e in events]
