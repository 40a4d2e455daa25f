"""
Time accounting for the match ledger engine.

Replays a match event log into the effective match time (net of pauses) and
into per-player time totals by role. All arithmetic is in integer
milliseconds; nothing here reads the wall clock except through the injected
``clock`` callable, which is only consulted when the log has no ``MATCH_END``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models import (
    EventType, MatchEvent, PlayerRole, PlayerTimeTotals, decode_events,
    normalize_role, role_for_position
)
from ..models.match_event import PAUSE_EVENT_TYPES, RESUME_EVENT_TYPES
from ..utils import Clock, resolve_clock

logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


def replay_order(events: Any) -> List[MatchEvent]:
    """Decode ``events`` and return them in timestamp order (stable for ties)."""
    if not isinstance(events, (list, tuple)):
        return []
    decoded = decode_events(list(events))
    return sorted(decoded, key=lambda event: event.timestamp)


def _first_of(events: Sequence[MatchEvent], event_type: EventType) -> Optional[MatchEvent]:
    for event in events:
        if event.type is event_type:
            return event
    return None


def _match_window(events: Sequence[MatchEvent], clock: Optional[Clock]) -> Optional[Interval]:
    """Return ``(start, end)`` of the match, or None without a MATCH_START."""
    start = _first_of(events, EventType.MATCH_START)
    if start is None:
        return None

    end_event = next(
        (e for e in events if e.type is EventType.MATCH_END and e.timestamp >= start.timestamp),
        None,
    )
    end_ts = end_event.timestamp if end_event is not None else resolve_clock(clock)()
    return start.timestamp, end_ts


def pause_intervals(events: Sequence[MatchEvent], end_ts: int) -> List[Interval]:
    """
    Collect pause intervals from pause/resume markers.

    A pause marker while already paused and a resume marker while running are
    both ignored. A pause still open at the end of the log runs until
    ``end_ts``.
    """
    intervals: List[Interval] = []
    pause_start: Optional[int] = None

    for event in events:
        if event.type in PAUSE_EVENT_TYPES:
            if pause_start is None:
                pause_start = event.timestamp
        elif event.type in RESUME_EVENT_TYPES:
            if pause_start is not None:
                intervals.append((pause_start, event.timestamp))
                pause_start = None

    if pause_start is not None:
        intervals.append((pause_start, max(pause_start, end_ts)))
    return intervals


def _paused_within(intervals: Sequence[Interval], start: int, end: int) -> int:
    paused = 0
    for pause_start, pause_end in intervals:
        overlap = min(end, pause_end) - max(start, pause_start)
        if overlap > 0:
            paused += overlap
    return paused


def calculate_effective_playing_time(events: Any, clock: Optional[Clock] = None) -> int:
    """
    Calculate elapsed match time excluding paused intervals.

    Args:
        events: Event log (MatchEvent instances or persisted records)
        clock: Zero-argument callable returning epoch ms, used as "now" when
            the log has no MATCH_END

    Returns:
        Effective playing time in milliseconds, 0 without a MATCH_START

    Example:
        start at 1000, pause at 31000, resume at 46000, end at 76000
        gives 60000.
    """
    ordered = replay_order(events)
    window = _match_window(ordered, clock)
    if window is None:
        return 0

    start_ts, end_ts = window
    paused = _paused_within(pause_intervals(ordered, end_ts), start_ts, end_ts)
    return max(0, (end_ts - start_ts) - paused)


def calculate_period_durations(events: Any, clock: Optional[Clock] = None) -> Dict[int, int]:
    """
    Effective duration of each period, keyed by period number.

    Periods are delimited by PERIOD_START/PERIOD_END; a period still open at
    the end of the match runs until the match end (or ``clock()``).
    """
    ordered = replay_order(events)
    window = _match_window(ordered, clock)
    if window is None:
        return {}

    _, end_ts = window
    pauses = pause_intervals(ordered, end_ts)
    durations: Dict[int, int] = {}
    open_period: Optional[Tuple[int, int]] = None

    def _close(period_number: int, started: int, ended: int) -> None:
        duration = max(0, (ended - started) - _paused_within(pauses, started, ended))
        durations[period_number] = durations.get(period_number, 0) + duration

    for event in ordered:
        if event.timestamp > end_ts:
            break
        number = getattr(event.data, "period_number", None) or event.period
        if event.type is EventType.PERIOD_START:
            if open_period is not None:
                _close(open_period[0], open_period[1], event.timestamp)
            open_period = (number, event.timestamp)
        elif event.type is EventType.PERIOD_END and open_period is not None:
            _close(open_period[0], open_period[1], event.timestamp)
            open_period = None

    if open_period is not None:
        _close(open_period[0], open_period[1], end_ts)
    return durations


# ----------------------------------------------------------------------
# Player time replay
# ----------------------------------------------------------------------
@dataclass
class _Stint:
    role: PlayerRole
    since: int


class _PlayerTimeReplay:
    """Tracks open stints per player and credits them when they close."""

    def __init__(self) -> None:
        self.totals: Dict[str, PlayerTimeTotals] = {}
        self.stints: Dict[str, _Stint] = {}

    def _ensure(self, player_id: str) -> PlayerTimeTotals:
        if player_id not in self.totals:
            self.totals[player_id] = PlayerTimeTotals()
        return self.totals[player_id]

    def open(self, player_id: str, role: PlayerRole, timestamp: int) -> None:
        self.close(player_id, timestamp)
        self._ensure(player_id)
        self.stints[player_id] = _Stint(role=role, since=timestamp)

    def close(self, player_id: str, timestamp: int) -> Optional[_Stint]:
        stint = self.stints.pop(player_id, None)
        if stint is not None:
            self._ensure(player_id).add_stint(stint.role, timestamp - stint.since)
        return stint

    def close_all(self, timestamp: int) -> None:
        for player_id in list(self.stints):
            self.close(player_id, timestamp)

    def current_role(self, player_id: str) -> Optional[PlayerRole]:
        stint = self.stints.get(player_id)
        return stint.role if stint is not None else None

    # -- event handlers -------------------------------------------------
    def match_start(self, event: MatchEvent) -> None:
        data = event.data
        for position_key, player_id in data.starting_formation.items():
            position_role = role_for_position(position_key)
            if position_role is PlayerRole.SUBSTITUTE:
                role = PlayerRole.SUBSTITUTE
            else:
                role = normalize_role(data.player_roles.get(player_id))
                if role is PlayerRole.UNKNOWN and position_role is not None:
                    role = position_role
            self.open(player_id, role, event.timestamp)

    def substitution(self, event: MatchEvent) -> None:
        data = event.data
        outgoing_roles = [self.current_role(pid) for pid in data.players_off]

        for player_id in data.players_off:
            self.open(player_id, PlayerRole.SUBSTITUTE, event.timestamp)

        for index, player_id in enumerate(data.players_on):
            role = normalize_role(data.new_roles.get(player_id))
            if role is PlayerRole.UNKNOWN and index < len(outgoing_roles):
                # Paired with the player leaving in the same slot
                role = outgoing_roles[index] or PlayerRole.UNKNOWN
            self.open(player_id, role, event.timestamp)

    def goalie_switch(self, event: MatchEvent) -> None:
        old_goalie = event.data.old_goalie
        new_goalie = event.data.new_goalie
        if old_goalie == new_goalie:
            return

        previous_role = self.current_role(new_goalie) if new_goalie else None
        if new_goalie:
            self.open(new_goalie, PlayerRole.GOALIE, event.timestamp)
        if old_goalie:
            self.open(old_goalie, previous_role or PlayerRole.SUBSTITUTE, event.timestamp)

    def position_switch(self, event: MatchEvent) -> None:
        for player_id, new_position in event.data.moves():
            self.open(player_id, normalize_role(new_position), event.timestamp)

    def player_inactivated(self, event: MatchEvent) -> None:
        if event.data.player_id:
            self.close(event.data.player_id, event.timestamp)

    def player_reactivated(self, event: MatchEvent) -> None:
        if event.data.player_id:
            self.open(event.data.player_id, PlayerRole.SUBSTITUTE, event.timestamp)


_ASSIGNMENT_HANDLERS = {
    EventType.SUBSTITUTION: _PlayerTimeReplay.substitution,
    EventType.GOALIE_SWITCH: _PlayerTimeReplay.goalie_switch,
    EventType.POSITION_SWITCH: _PlayerTimeReplay.position_switch,
    EventType.PLAYER_INACTIVATED: _PlayerTimeReplay.player_inactivated,
    EventType.PLAYER_REACTIVATED: _PlayerTimeReplay.player_reactivated,
}


def calculate_player_time_totals(
    events: Any, clock: Optional[Clock] = None
) -> Dict[str, PlayerTimeTotals]:
    """
    Replay the event log into cumulative per-player time totals.

    Stints open at MATCH_START from the starting formation and change on
    substitutions, goalie switches, position switches and player
    (in)activation. Every stint still open closes at MATCH_END, or at
    ``clock()`` when the log has no MATCH_END.

    Args:
        events: Event log (MatchEvent instances or persisted records)
        clock: Zero-argument callable returning epoch ms

    Returns:
        Mapping of player id to :class:`PlayerTimeTotals`; empty without a
        MATCH_START
    """
    ordered = replay_order(events)
    replay = _PlayerTimeReplay()
    started = False

    for event in ordered:
        if not started:
            if event.type is EventType.MATCH_START:
                replay.match_start(event)
                started = True
            continue

        if event.type is EventType.MATCH_END:
            replay.close_all(event.timestamp)
            return replay.totals

        handler = _ASSIGNMENT_HANDLERS.get(event.type)
        if handler is not None:
            handler(replay, event)

    if not started:
        logger.debug("No match_start in log; no player totals derived")
        return {}

    replay.close_all(resolve_clock(clock)())
    return replay.totals
