"""Asynchronous key-value stores backing prompts and preferences.

Updates:
  v0.3.0 - 2026-03-06 - Enforce a size ceiling on file-backed writes.
  v0.2.0 - 2026-02-20 - Replace the JSON file atomically on every write.
  v0.1.0 - 2026-02-05 - Introduce in-memory and JSON file stores.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

from config.settings import DEFAULT_STORAGE_QUOTA_BYTES

from .exceptions import StorageError, StorageQuotaError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger("prompt_nest.storage")

PROMPTS_KEY = "prompts"
USER_CONTEXT_KEY = "userContext"


@runtime_checkable
class KeyValueStore(Protocol):
    """String-keyed store with JSON values; no atomicity across keys."""

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        """Return stored values for *keys*; missing keys are omitted."""
        ...

    async def set(self, values: Mapping[str, Any]) -> None:
        """Merge *values* into the store."""
        ...

    async def remove(self, key: str) -> None:
        """Delete *key* if present."""
        ...


class MemoryKeyValueStore:
    """Dictionary-backed store used by tests and ephemeral sessions."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(initial or {}))

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        return {key: copy.deepcopy(self._data[key]) for key in keys if key in self._data}

    async def set(self, values: Mapping[str, Any]) -> None:
        self._data.update(copy.deepcopy(dict(values)))

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        """Return a deep copy of everything currently stored."""
        return copy.deepcopy(self._data)


class JsonFileKeyValueStore:
    """Persist a single JSON object on disk with a bounded payload size.

    Every write serialises the whole object, checks it against
    ``quota_bytes`` and atomically replaces the file, so readers never see
    a partially written document. File access runs in a worker thread.
    """

    def __init__(self, path: Path | str, *, quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES) -> None:
        if quota_bytes <= 0:
            raise ValueError("quota_bytes must be positive")
        self._path = Path(path)
        self._quota_bytes = quota_bytes
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def quota_bytes(self) -> int:
        return self._quota_bytes

    async def get(self, keys: Iterable[str]) -> dict[str, Any]:
        data = await asyncio.to_thread(self._read)
        return {key: data[key] for key in keys if key in data}

    async def set(self, values: Mapping[str, Any]) -> None:
        payload = dict(values)
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            data.update(payload)
            await asyncio.to_thread(self._write, data)
        logger.debug("Stored keys", extra={"keys": sorted(payload), "path": str(self._path)})

    async def remove(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data:
                return
            del data[key]
            await asyncio.to_thread(self._write, data)

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Unable to read store at {self._path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            parsed: object = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StorageError(f"Store at {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(parsed, dict):
            raise StorageError(f"Store at {self._path} must contain a JSON object")
        return dict(cast("dict[str, Any]", parsed))

    def _write(self, data: Mapping[str, Any]) -> None:
        try:
            serialised = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Store values must be JSON serialisable: {exc}") from exc
        size = len(serialised.encode("utf-8"))
        if size > self._quota_bytes:
            raise StorageQuotaError(
                f"Write of {size} bytes exceeds the {self._quota_bytes} byte storage quota"
            )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(serialised)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Unable to write store at {self._path}: {exc}") from exc


__all__ = [
    "PROMPTS_KEY",
    "USER_CONTEXT_KEY",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
]
