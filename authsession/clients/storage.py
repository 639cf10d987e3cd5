from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from authsession.config import Settings
from authsession.core.logging import get_logger
from authsession.schemas.enums import StorageType

logger = get_logger(__name__)


class ClientStorage(Protocol):
    """Durable key/value store for session material."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage. Nothing survives a restart."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)


class FileStorage:
    """Stores items as a JSON object in a single file.

    Every write replaces the file atomically, so a crash mid-write leaves the
    previous contents in place.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        items = self._load()
        items[key] = value
        self._dump(items)

    def remove(self, key: str) -> None:
        items = self._load()
        if key in items:
            del items[key]
            self._dump(items)

    def _load(self) -> dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("storage_file_corrupt", path=str(self._path))
            return {}
        if not isinstance(data, dict):
            logger.warning("storage_file_corrupt", path=str(self._path))
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _dump(self, items: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".storage-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(items, fh)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def create_storage(settings: Settings) -> ClientStorage:
    if settings.CLIENT_STORAGE is StorageType.FILE:
        logger.info("storage_selected", backend="file", path=settings.STORAGE_PATH)
        return FileStorage(settings.STORAGE_PATH)
    logger.info("storage_selected", backend="memory")
    return MemoryStorage()
