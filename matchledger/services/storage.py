"""
Key/value blob storage used for crash recovery and cached session state.

The engine only ever reads and writes whole string blobs by key. Callers
inject an implementation of :class:`StoragePort`; two are provided here, an
in-memory one and a directory of JSON files.
"""
import os
import re
from typing import Dict, List, Optional, Protocol


class StorageError(OSError):
    """Raised when a storage backend cannot read or write a blob."""


class StoragePort(Protocol):
    """Abstract interface for blob storage - supports DIP."""

    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under ``key`` or None."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous blob."""
        ...

    def remove(self, key: str) -> None:
        """Delete the blob under ``key`` if present."""
        ...


class InMemoryStorage:
    """Dictionary-backed storage, used in tests and as the web default."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._blobs: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value

    def remove(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._blobs)


_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class FileStorage:
    """
    Storage backed by one ``<key>.json`` file per key in a directory.

    Args:
        directory: Directory holding the blobs; created on first write
    """

    def __init__(self, directory: str):
        self.directory = directory

    def _path_for(self, key: str) -> str:
        safe_key = _UNSAFE_KEY_CHARS.sub("_", key)
        return os.path.join(self.directory, f"{safe_key}.json")

    def get(self, key: str) -> Optional[str]:
        """
        Read a blob.

        Raises:
            StorageError: If the file exists but cannot be read
        """
        file_path = self._path_for(key)
        if not os.path.exists(file_path):
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Cannot read blob '{key}': {exc}") from exc

    def set(self, key: str, value: str) -> None:
        """
        Write a blob, creating the storage directory when needed.

        Raises:
            StorageError: If the file cannot be written
        """
        try:
            if self.directory and not os.path.exists(self.directory):
                os.makedirs(self.directory)
            with open(self._path_for(key), "w", encoding="utf-8") as f:
                f.write(value)
        except OSError as exc:
            raise StorageError(f"Cannot write blob '{key}': {exc}") from exc

    def remove(self, key: str) -> None:
        file_path = self._path_for(key)
        try:
            if os.path.exists(file_path):
                os.remove(file_path)
        except OSError as exc:
            raise StorageError(f"Cannot remove blob '{key}': {exc}") from exc

    def get_recent_keys(self, limit: int = 10) -> List[str]:
        """
        List stored keys, most recently modified first.

        Returns:
            Key names (file names without the ``.json`` suffix)
        """
        if not os.path.exists(self.directory):
            return []

        try:
            entries = []
            for filename in os.listdir(self.directory):
                if filename.endswith(".json"):
                    file_path = os.path.join(self.directory, filename)
                    if os.path.isfile(file_path):
                        entries.append((filename[: -len(".json")], os.path.getmtime(file_path)))

            entries.sort(key=lambda x: x[1], reverse=True)
            return [name for name, _ in entries[:limit]]
        except OSError:
            return []
