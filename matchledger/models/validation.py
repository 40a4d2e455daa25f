"""Typed, severity-tagged integrity issues reported for an event log."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ValidationErrorType(Enum):
    """Failure modes an event log can exhibit."""
    CHRONOLOGY = "chronology_error"
    DUPLICATE_EVENT = "duplicate_event"
    MISSING_DATA = "missing_data"
    CORRUPTED_EVENT = "corrupted_event"
    SEQUENCE_GAP = "sequence_gap"
    PLAYER_TIME_MISMATCH = "player_time_mismatch"
    TIME_INCONSISTENCY = "time_inconsistency"


class Severity(Enum):
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationError:
    """
    One integrity issue found in an event log.

    This is a value object returned by the validator, not an exception.

    Attributes:
        type: Which check produced the issue
        severity: ``critical`` when the log is unusable as a whole
        detail: Human-readable description
        event_id: Id of the offending event, when there is one
        index: Array index of the offending event, when there is one
    """
    type: ValidationErrorType
    severity: Severity
    detail: str
    event_id: Optional[str] = None
    index: Optional[int] = None

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type.value,
            "severity": self.severity.value,
            "detail": self.detail,
        }
        if self.event_id is not None:
            payload["eventId"] = self.event_id
        if self.index is not None:
            payload["index"] = self.index
        return payload
