"""Key-value blob storage used to persist store state between sessions."""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_SAFE_KEY = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.")


class StorageError(Exception):
    """Raised when a blob cannot be read from or written to storage."""


class BlobStore(ABC):
    """Abstract key-value store holding one JSON-serialisable value per key.

    Stores read once at start-up and write the whole value back on every
    mutation, so implementations only need whole-blob get/set semantics.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the decoded value for *key*, or ``None`` if absent.

        Raises:
            StorageError: If the blob exists but cannot be read or decoded.
        """

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Replace the value stored under *key*.

        Raises:
            StorageError: If the value cannot be encoded or written.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*. Removing a missing key is not an error."""


class MemoryBlobStore(BlobStore):
    """In-process store; values are kept as JSON text to mimic persistence."""

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self._blobs.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        try:
            self._blobs[key] = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot encode value for key {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._blobs)


class JsonFileBlobStore(BlobStore):
    """Stores each key as ``<directory>/<key>.json``.

    Writes go to a temporary sibling file which is then renamed over the
    target, so a crash mid-write never leaves a truncated blob behind.

    Args:
        directory: Folder holding the blobs. Created on first write.
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt JSON in {path}: {exc}") from exc

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            payload = json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Cannot encode value for key {key!r}: {exc}") from exc
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload + "\n", encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(f"Cannot write {path}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(payload), path)

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageError(f"Cannot delete {path}: {exc}") from exc

    def _path(self, key: str) -> Path:
        if not key or not set(key) <= _SAFE_KEY:
            raise StorageError(f"Invalid storage key {key!r}")
        return self._directory / f"{key}.json"
