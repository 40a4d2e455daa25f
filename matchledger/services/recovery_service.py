"""
Recovery of usable event logs from corrupted or partial persisted data.

Recovery is best effort and never raises on bad data: callers (crash
recovery at startup, history screens) must always get something to work
with, even if it is degraded.
"""
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import EventDecodeError, MatchEvent
from ..models.match_event import events_to_dicts
from ..utils import Clock, MATCH_EVENT_STORAGE_KEYS, resolve_clock
from .event_validator import validate_match_data
from .storage import StorageError, StoragePort

logger = logging.getLogger(__name__)


def _is_salvageable(record: Any) -> bool:
    # ids are used as set members when deduplicating
    if not isinstance(record, Mapping) or not isinstance(record.get("id"), (str, int)):
        return False
    try:
        MatchEvent.from_dict(record)
    except EventDecodeError as exc:
        logger.debug("Dropping unrecoverable event %r: %s", record.get("id"), exc)
        return False
    return True


def recover_corrupted_events(events: Any) -> List[Dict[str, Any]]:
    """
    Salvage a consistent event log from a corrupted one.

    Drops entries that are not objects, lack an id, have an unknown type, a
    missing or non-finite timestamp or a payload that does not decode. Keeps the first occurrence of each id, sorts the
    survivors by timestamp and renumbers ``sequence`` densely from 1. Input
    records are copied, never mutated, and running the function on its own
    output returns an equal list.

    Args:
        events: Anything; only lists are recovered

    Returns:
        Recovered events in the persisted shape, ``[]`` for non-list input
    """
    if not isinstance(events, (list, tuple)):
        logger.error("Cannot recover: events is not an array")
        return []

    survivors: List[Dict[str, Any]] = []
    seen_ids = set()
    dropped = 0
    for event in events:
        record = event.to_dict() if isinstance(event, MatchEvent) else event
        if not _is_salvageable(record):
            dropped += 1
            continue
        if record["id"] in seen_ids:
            dropped += 1
            continue
        seen_ids.add(record["id"])
        survivors.append(dict(record))

    survivors.sort(key=lambda record: record["timestamp"])
    for index, record in enumerate(survivors, start=1):
        record["sequence"] = index

    if dropped:
        logger.warning("Recovery dropped %d of %d events", dropped, len(events))
    return survivors


def validate_and_restore(raw: Any, clock: Optional[Clock] = None) -> Optional[Dict[str, Any]]:
    """
    Parse a persisted blob and return a usable payload.

    Args:
        raw: JSON text shaped ``{"events": [...], ...}``
        clock: Clock used to stamp ``recoveryTimestamp``

    Returns:
        The parsed object unchanged when its events validate cleanly; a copy
        with recovered ``events``, ``recovered: True`` and
        ``recoveryTimestamp`` when they do not; None for empty input, invalid
        JSON, non-object JSON, or when nothing could be recovered.
    """
    if not raw or not isinstance(raw, (str, bytes, bytearray)):
        return None

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.error("Failed to validate and restore: %s", exc)
        return None

    if not isinstance(data, dict):
        logger.error("Failed to validate and restore: blob is not an object")
        return None

    issues = validate_match_data(data.get("events"), clock=clock)
    if not issues:
        return data

    recovered = recover_corrupted_events(data.get("events"))
    if not recovered:
        logger.warning("Blob failed validation and no events could be recovered")
        return None

    logger.info("Recovered %d events after %d validation issue(s)", len(recovered), len(issues))
    return {
        **data,
        "events": recovered,
        "recovered": True,
        "recoveryTimestamp": resolve_clock(clock)(),
    }


def recover_from_crash(
    storage: StoragePort,
    keys: Sequence[str] = MATCH_EVENT_STORAGE_KEYS,
    clock: Optional[Clock] = None,
) -> Optional[Dict[str, Any]]:
    """
    Restore the event log after a crash from the first usable storage key.

    Args:
        storage: Storage port holding persisted event blobs
        keys: Candidate keys, tried in order (primary, backup, emergency)
        clock: Clock used to stamp ``recoveryTimestamp``

    Returns:
        The first payload :func:`validate_and_restore` accepts, else None
    """
    for key in keys:
        try:
            raw = storage.get(key)
        except StorageError as exc:
            logger.warning("Crash recovery could not read '%s': %s", key, exc)
            continue

        if not raw:
            continue

        restored = validate_and_restore(raw, clock=clock)
        if restored is not None:
            logger.info("Crash recovery restored match events from '%s'", key)
            return restored

    logger.warning("No valid storage found for crash recovery")
    return None


class CrashRecoveryService:
    """
    Persists the live event log with backups and restores it after a crash.

    Args:
        storage: Storage port for event blobs
        clock: Clock for ``lastUpdated``/``recoveryTimestamp`` stamps
        keys: Primary key first, then fallbacks
    """

    def __init__(self, storage: StoragePort, clock: Optional[Clock] = None,
                 keys: Sequence[str] = MATCH_EVENT_STORAGE_KEYS):
        if not keys:
            raise ValueError("At least one storage key is required")
        self.storage = storage
        self.clock = resolve_clock(clock)
        self.keys = tuple(keys)

    def save_events(self, events: Sequence[Any], **extra: Any) -> Dict[str, Any]:
        """
        Write the log to the primary key and to the first backup key.

        Raises:
            StorageError: If the primary write fails
        """
        blob = {
            **extra,
            "events": events_to_dicts(events),
            "lastUpdated": self.clock(),
        }
        text = json.dumps(blob)
        self.storage.set(self.keys[0], text)
        if len(self.keys) > 1:
            try:
                self.storage.set(self.keys[1], text)
            except StorageError as exc:
                logger.warning("Backup write to '%s' failed: %s", self.keys[1], exc)
        return blob

    def recover(self) -> Optional[Dict[str, Any]]:
        return recover_from_crash(self.storage, keys=self.keys, clock=self.clock)

    def restore(self, raw: Any) -> Optional[Dict[str, Any]]:
        return validate_and_restore(raw, clock=self.clock)

    def clear(self) -> None:
        for key in self.keys:
            try:
                self.storage.remove(key)
            except StorageError as exc:
                logger.warning("Could not clear '%s': %s", key, exc)
