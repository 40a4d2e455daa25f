"""Per-player time totals derived from a match event log."""

from dataclasses import dataclass
from typing import Dict

from .positions import PlayerRole, is_field_role


@dataclass
class PlayerTimeTotals:
    """
    Cumulative time a player spent on the field and in each role.

    All values are integer milliseconds. Totals are derived from the event
    log on demand and never persisted.
    """

    time_on_field: int = 0
    time_as_defender: int = 0
    time_as_midfielder: int = 0
    time_as_attacker: int = 0
    time_as_goalie: int = 0
    time_as_substitute: int = 0

    @property
    def role_time_total(self) -> int:
        """Sum of the on-field role buckets."""
        return (
            self.time_as_defender
            + self.time_as_midfielder
            + self.time_as_attacker
            + self.time_as_goalie
        )

    def add_stint(self, role: PlayerRole, duration_ms: int) -> None:
        """Credit a closed stint of ``duration_ms`` spent in ``role``."""
        if duration_ms <= 0:
            return

        if is_field_role(role):
            self.time_on_field += duration_ms

        if role is PlayerRole.GOALIE:
            self.time_as_goalie += duration_ms
        elif role is PlayerRole.DEFENDER:
            self.time_as_defender += duration_ms
        elif role is PlayerRole.MIDFIELDER:
            self.time_as_midfielder += duration_ms
        elif role is PlayerRole.ATTACKER:
            self.time_as_attacker += duration_ms
        elif role is PlayerRole.SUBSTITUTE:
            self.time_as_substitute += duration_ms

    def to_dict(self) -> Dict[str, int]:
        """Convert to the camelCase shape read by the match summary client."""
        return {
            "timeOnField": self.time_on_field,
            "timeAsDefender": self.time_as_defender,
            "timeAsMidfielder": self.time_as_midfielder,
            "timeAsAttacker": self.time_as_attacker,
            "timeAsGoalie": self.time_as_goalie,
            "timeAsSub": self.time_as_substitute,
        }
