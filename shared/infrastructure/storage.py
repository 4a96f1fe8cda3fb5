"""
Durable key-value storage

String-valued key/value records that survive a restart, one value per
logical dataset. Stores never interpret the values they hold.

Backends:
- InMemoryStorage: process-local dictionary, optional byte quota (tests)
- FileStorage: one text file per key inside a directory
- DjangoStorage: one StoredValue row per key in the default database
"""

from __future__ import annotations

import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from django.db import DatabaseError, transaction  # type: ignore

logger = structlog.get_logger(__name__)


class StorageError(Exception):
    """Raised when a durable write or read fails."""


class StorageQuotaExceeded(StorageError):
    """Raised when a write would exceed the backend's capacity."""


class UnreadableValue(StorageError):
    """Raised when a stored value exists but is not valid text."""

    def __init__(self, message: str, key: str):
        self.key = key
        super().__init__(message)


def _encoded_size(text: str) -> int:
    try:
        return len(text.encode('utf-8'))
    except UnicodeError as e:
        raise StorageError(f"Value is not valid UTF-8 text: {e}") from e


class KeyValueStorage(ABC):
    """Abstract durable store"""

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent"""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Replace the whole value stored under ``key``"""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Drop ``key``; absent keys are ignored"""


class InMemoryStorage(KeyValueStorage):
    """
    Dictionary-backed storage

    Several stores sharing one InMemoryStorage behave like several tabs
    sharing one browser profile. ``quota`` caps the total number of
    UTF-8 bytes held across keys.
    """

    def __init__(self, quota: int | None = None, initial: dict[str, str] | None = None):
        self.quota = quota
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise StorageError(f"Only text values can be stored, got {type(value).__name__}")
        size = _encoded_size(key) + _encoded_size(value)
        if self.quota is not None:
            used = sum(
                _encoded_size(k) + _encoded_size(v)
                for k, v in self._items.items()
                if k != key
            )
            if used + size > self.quota:
                raise StorageQuotaExceeded(
                    f"Writing {key!r} would exceed the storage quota of {self.quota} bytes"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items


class FileStorage(KeyValueStorage):
    """
    Directory-backed storage

    Each key maps to ``<directory>/<key>.json``. Writes go to a temporary
    file that replaces the target, so readers in other processes see
    either the old or the new value, never a partial one.
    """

    _SAFE_KEY = re.compile(r'^[A-Za-z0-9_.-]+$')

    def __init__(self, directory: str | os.PathLike):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not self._SAFE_KEY.match(key):
            raise StorageError(f"Unsupported storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise UnreadableValue(f"{path} does not hold UTF-8 text: {e}", key=key) from e
        except OSError as e:
            raise StorageError(f"Cannot read {path}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                fh.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, UnicodeError) as e:
            raise StorageError(f"Cannot write {path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot remove {key!r}: {e}") from e


class DjangoStorage(KeyValueStorage):
    """
    Database-backed storage on top of the StoredValue model

    Every write replaces the row for its key inside a transaction.
    """

    def __init__(self, using: str = 'default'):
        self.using = using

    @staticmethod
    def _model():
        # Local import: the model lives in an installed app
        from apps.bookings.models import StoredValue
        return StoredValue

    def get_item(self, key: str) -> str | None:
        model = self._model()
        try:
            row = model.objects.using(self.using).filter(key=key).only('value').first()
        except DatabaseError as e:
            raise StorageError(f"Cannot read {key!r}: {e}") from e
        return row.value if row is not None else None

    def set_item(self, key: str, value: str) -> None:
        model = self._model()
        _encoded_size(value)
        try:
            with transaction.atomic(using=self.using):
                model.objects.using(self.using).update_or_create(
                    key=key,
                    defaults={'value': value},
                )
        except DatabaseError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageError(f"Cannot write {key!r}: {e}") from e

    def remove_item(self, key: str) -> None:
        model = self._model()
        try:
            model.objects.using(self.using).filter(key=key).delete()
        except DatabaseError as e:
            raise StorageError(f"Cannot remove {key!r}: {e}") from e
