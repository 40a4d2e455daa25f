"""
Persistence service for cached session state.

This module loads and saves JSON state objects under a single storage key,
merging whatever was stored with a default state so callers always receive
every expected field.
"""
import copy
import json
import logging
from typing import Any, Dict, Optional

from .storage import StorageError, StoragePort

logger = logging.getLogger(__name__)


class PersistenceManager:
    """
    Load/save a JSON object under one key of a storage port.

    Failures never propagate: a missing, unreadable or malformed blob loads
    as the default state, and a failed save returns False.
    """

    def __init__(self, storage: StoragePort, storage_key: str,
                 default_state: Optional[Dict[str, Any]] = None):
        self.storage = storage
        self.storage_key = storage_key
        self.default_state: Dict[str, Any] = dict(default_state or {})

    def load_state(self) -> Dict[str, Any]:
        """
        Load the stored state merged over the default state.

        Returns:
            A fresh dictionary; the default state when nothing usable is stored
        """
        try:
            saved = self.storage.get(self.storage_key)
        except StorageError as exc:
            logger.warning("Failed to load state '%s': %s", self.storage_key, exc)
            return self._defaults()

        if not saved:
            return self._defaults()

        try:
            parsed = json.loads(saved)
        except ValueError as exc:
            logger.warning("Invalid JSON stored under '%s': %s", self.storage_key, exc)
            return self._defaults()

        if not isinstance(parsed, dict):
            logger.warning("Invalid state format under '%s', using default state", self.storage_key)
            return self._defaults()

        return self._merge_with_defaults(parsed)

    def save_state(self, state: Any) -> bool:
        """
        Save ``state`` as JSON.

        Returns:
            True when the state was written
        """
        if not isinstance(state, dict):
            logger.warning("Invalid state provided for saving under '%s'", self.storage_key)
            return False

        try:
            self.storage.set(self.storage_key, json.dumps(state))
            return True
        except (TypeError, ValueError) as exc:
            logger.warning("State under '%s' is not JSON serializable: %s", self.storage_key, exc)
        except StorageError as exc:
            logger.warning("Failed to save state '%s': %s", self.storage_key, exc)
        return False

    def clear_state(self) -> bool:
        try:
            self.storage.remove(self.storage_key)
            return True
        except StorageError as exc:
            logger.warning("Failed to clear state '%s': %s", self.storage_key, exc)
            return False

    def has_stored_state(self) -> bool:
        try:
            return self.storage.get(self.storage_key) is not None
        except StorageError:
            return False

    def _defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self.default_state)

    def _merge_with_defaults(self, loaded: Dict[str, Any]) -> Dict[str, Any]:
        """Keep only known keys; nested objects merge one level deep."""
        if not self.default_state:
            return loaded

        merged = self._defaults()
        for key, value in loaded.items():
            if key not in self.default_state:
                continue
            default = self.default_state[key]
            if isinstance(default, dict) and isinstance(value, dict):
                merged[key] = {**default, **value}
            else:
                merged[key] = value
        return merged
