"""Key-value storage backends for identities and cached config."""

from __future__ import annotations

import json
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from .exceptions import ConfigLoadError, ConstructionError, ErrorCodes

APP_USER_ID = "featureFlagAppUserId"
FEATURE_FLAG_USER_ID = "featureFlagUserId"
FEATURE_FLAG_CONFIG = "featureFlagConfig"
FEATURE_FLAG_CONFIG_ETAG = "featureFlagConfigETag"
FEATURE_FLAG_CONFIG_FETCHED_AT = "featureFlagConfigFetchedAt"

DEFAULT_STORAGE_PATH = Path(".rolloutflag.json")


class FlagStorage(ABC):
    """Abstract key-value storage."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    async def delete(self, key: str) -> None: ...


class InMemoryFlagStorage(FlagStorage):
    """Process-local storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._store: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class NullFlagStorage(FlagStorage):
    """Storage that keeps nothing. Used when no backend is available."""

    async def get(self, key: str) -> str | None:
        return None

    async def set(self, key: str, value: str) -> None:
        return None

    async def delete(self, key: str) -> None:
        return None


class FileFlagStorage(FlagStorage):
    """JSON file storage, so identities survive process restarts."""

    def __init__(self, path: Path | str = DEFAULT_STORAGE_PATH) -> None:
        self._path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as e:
            raise ConfigLoadError(
                code=ErrorCodes.STORAGE_ERROR,
                message=f"Failed to read storage file: {self._path}",
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise ConfigLoadError(
                code=ErrorCodes.STORAGE_ERROR,
                message=f"Storage file is not a JSON object: {self._path}",
            )
        return data

    def _write(self, data: dict[str, str]) -> None:
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp)
            Path(tmp_name).replace(self._path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise ConfigLoadError(
                code=ErrorCodes.STORAGE_ERROR,
                message=f"Failed to write storage file: {self._path}",
                cause=e,
            ) from e

    async def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return None if value is None else str(value)

    async def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    async def delete(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


def create_storage(storage_type: str | None = None, path: Path | str | None = None) -> FlagStorage:
    """Select a storage backend by name: "memory" (default), "file" or "none"."""
    kind = (storage_type or "memory").lower()
    if kind in ("memory", "inmemory"):
        return InMemoryFlagStorage()
    if kind == "file":
        return FileFlagStorage(path if path is not None else DEFAULT_STORAGE_PATH)
    if kind == "none":
        return NullFlagStorage()
    raise ConstructionError(
        code=ErrorCodes.UNKNOWN_STORAGE_TYPE,
        message=f"Unknown storage type: {storage_type}",
    )
