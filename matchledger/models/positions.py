"""Formation position keys and the player roles they map to."""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Optional


class PlayerRole(Enum):
    """Roles a player can hold while assigned to a formation slot."""
    GOALIE = "Goalie"
    DEFENDER = "Defender"
    MIDFIELDER = "Midfielder"
    ATTACKER = "Attacker"
    SUBSTITUTE = "Substitute"
    FIELD = "Field"  # on the field, no specific role
    UNKNOWN = "Unknown"


class PositionKey(Enum):
    """Formation slot keys used in starting formations and switches."""
    GOALIE = "goalie"

    # 2-2 formation
    LEFT_DEFENDER = "leftDefender"
    RIGHT_DEFENDER = "rightDefender"
    LEFT_ATTACKER = "leftAttacker"
    RIGHT_ATTACKER = "rightAttacker"

    # 1-2-1 formation
    DEFENDER = "defender"
    LEFT = "left"
    RIGHT = "right"
    ATTACKER = "attacker"

    # Wider formations
    LEFT_MIDFIELDER = "leftMidfielder"
    RIGHT_MIDFIELDER = "rightMidfielder"
    MIDFIELDER = "midfielder"

    SUBSTITUTE_1 = "substitute_1"
    SUBSTITUTE_2 = "substitute_2"
    SUBSTITUTE_3 = "substitute_3"
    SUBSTITUTE_4 = "substitute_4"
    SUBSTITUTE_5 = "substitute_5"
    SUBSTITUTE_6 = "substitute_6"


POSITION_ROLE_MAP: Dict[str, PlayerRole] = {
    PositionKey.GOALIE.value: PlayerRole.GOALIE,
    PositionKey.LEFT_DEFENDER.value: PlayerRole.DEFENDER,
    PositionKey.RIGHT_DEFENDER.value: PlayerRole.DEFENDER,
    PositionKey.DEFENDER.value: PlayerRole.DEFENDER,
    PositionKey.LEFT.value: PlayerRole.MIDFIELDER,
    PositionKey.RIGHT.value: PlayerRole.MIDFIELDER,
    PositionKey.LEFT_MIDFIELDER.value: PlayerRole.MIDFIELDER,
    PositionKey.RIGHT_MIDFIELDER.value: PlayerRole.MIDFIELDER,
    PositionKey.MIDFIELDER.value: PlayerRole.MIDFIELDER,
    PositionKey.LEFT_ATTACKER.value: PlayerRole.ATTACKER,
    PositionKey.RIGHT_ATTACKER.value: PlayerRole.ATTACKER,
    PositionKey.ATTACKER.value: PlayerRole.ATTACKER,
    PositionKey.SUBSTITUTE_1.value: PlayerRole.SUBSTITUTE,
    PositionKey.SUBSTITUTE_2.value: PlayerRole.SUBSTITUTE,
    PositionKey.SUBSTITUTE_3.value: PlayerRole.SUBSTITUTE,
    PositionKey.SUBSTITUTE_4.value: PlayerRole.SUBSTITUTE,
    PositionKey.SUBSTITUTE_5.value: PlayerRole.SUBSTITUTE,
    PositionKey.SUBSTITUTE_6.value: PlayerRole.SUBSTITUTE,
}

# Bench slots beyond the named ones follow the same pattern
_SUBSTITUTE_KEY = re.compile(r"substitute_\d+")

FIELD_ROLES = frozenset({
    PlayerRole.GOALIE,
    PlayerRole.DEFENDER,
    PlayerRole.MIDFIELDER,
    PlayerRole.ATTACKER,
    PlayerRole.FIELD,
})

# Labels the live client has historically written for roles
_ROLE_ALIASES: Dict[str, PlayerRole] = {
    "goalie": PlayerRole.GOALIE,
    "goalkeeper": PlayerRole.GOALIE,
    "gk": PlayerRole.GOALIE,
    "defender": PlayerRole.DEFENDER,
    "midfielder": PlayerRole.MIDFIELDER,
    "attacker": PlayerRole.ATTACKER,
    "forward": PlayerRole.ATTACKER,
    "substitute": PlayerRole.SUBSTITUTE,
    "sub": PlayerRole.SUBSTITUTE,
    "field": PlayerRole.FIELD,
    "field_player": PlayerRole.FIELD,
    "on field": PlayerRole.FIELD,
    "on_field": PlayerRole.FIELD,
    "unknown": PlayerRole.UNKNOWN,
}


def role_for_position(position_key: Optional[str]) -> Optional[PlayerRole]:
    """Look up the role for a formation position key, ``None`` if unknown."""
    if not isinstance(position_key, str):
        return None
    role = POSITION_ROLE_MAP.get(position_key)
    if role is None and _SUBSTITUTE_KEY.fullmatch(position_key):
        return PlayerRole.SUBSTITUTE
    return role


def normalize_role(label: object) -> PlayerRole:
    """
    Normalize any role label to a :class:`PlayerRole`.

    Accepts enum members, role labels in any letter case, and formation
    position keys. Anything else maps to ``PlayerRole.UNKNOWN``.

    Example:
        >>> normalize_role("DEFENDER")
        <PlayerRole.DEFENDER: 'Defender'>
        >>> normalize_role("rightAttacker")
        <PlayerRole.ATTACKER: 'Attacker'>
    """
    if isinstance(label, PlayerRole):
        return label
    if not isinstance(label, str) or not label.strip():
        return PlayerRole.UNKNOWN

    text = label.strip()
    from_position = role_for_position(text)
    if from_position is not None:
        return from_position
    return _ROLE_ALIASES.get(text.lower(), PlayerRole.UNKNOWN)


def is_field_role(role: Optional[PlayerRole]) -> bool:
    """Return True when time in ``role`` counts as time on the field."""
    return role in FIELD_ROLES


def is_substitute_position(position_key: Optional[str]) -> bool:
    """Return True for bench slots such as ``substitute_3``."""
    return role_for_position(position_key) is PlayerRole.SUBSTITUTE
