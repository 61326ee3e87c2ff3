"""Filesystem cache adapter.

One JSON file per key, named by the percent-encoded key:
``{"value": ..., "expiresAt": <epoch ms or null>}``.
"""

import asyncio
import os
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import quote, unquote

from brainrot.cache import serialization
from brainrot.cache.adapter import CacheAdapter, matches_pattern
from brainrot.observability.logging import get_logger
from brainrot.utils.time import Clock, now_ms

logger = get_logger(__name__)

_SUFFIX = ".json"


class FilesystemCacheAdapter(CacheAdapter):
    """Durable cache that survives restarts on a single host.

    The directory is created lazily on first write. Reads and deletes never
    raise: failures come back as ``None``/``False``. Writes raise.
    """

    def __init__(self, directory: Path | str | None = None, clock: Clock = now_ms) -> None:
        self._directory = (
            Path(directory)
            if directory is not None
            else Path(tempfile.gettempdir()) / "fs_cache_adapter"
        )
        self._clock = clock

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}{_SUFFIX}"

    def _write(self, path: Path, payload: str) -> None:
        """Write through a sibling temp file so readers never see a partial entry."""
        self._directory.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _read_entry(self, path: Path) -> dict[str, Any] | None:
        """Read an entry, removing it when expired."""
        entry = serialization.loads(path.read_text(encoding="utf-8"))
        expires_at = entry.get("expiresAt")
        if expires_at is not None and self._clock() > expires_at:
            path.unlink(missing_ok=True)
            return None
        return entry

    async def set(self, key: str, value: Any, ttl_ms: int | None = None) -> None:
        entry = {
            "value": value,
            "expiresAt": self._clock() + ttl_ms if ttl_ms else None,
        }
        await asyncio.to_thread(self._write, self._path_for(key), serialization.dumps(entry))

    async def get(self, key: str) -> Any | None:
        path = self._path_for(key)
        try:
            entry = await asyncio.to_thread(self._read_entry, path)
        except FileNotFoundError:
            return None
        except Exception as e:
            logger.warning("fs_cache_read_failed", key=key, error=str(e))
            return None
        return entry["value"] if entry is not None else None

    async def delete(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._path_for(key).unlink)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("fs_cache_delete_failed", key=key, error=str(e))
            return False

    async def flush(self) -> None:
        try:
            files = await asyncio.to_thread(self._list_files)
        except OSError as e:
            logger.warning("fs_cache_flush_failed", error=str(e))
            return
        for path in files:
            try:
                await asyncio.to_thread(path.unlink, True)
            except OSError as e:
                logger.warning("fs_cache_flush_failed", file=path.name, error=str(e))

    async def keys(self, pattern: str = "*") -> list[str]:
        try:
            files = await asyncio.to_thread(self._list_files)
        except OSError as e:
            logger.warning("fs_cache_keys_failed", error=str(e))
            return []

        result: list[str] = []
        for path in files:
            key = unquote(path.name[: -len(_SUFFIX)])
            if not matches_pattern(key, pattern):
                continue
            try:
                entry = await asyncio.to_thread(self._read_entry, path)
            except Exception:
                # Unreadable or vanished mid-scan; leave it out of the listing
                continue
            if entry is not None:
                result.append(key)
        return result

    def _list_files(self) -> list[Path]:
        if not self._directory.exists():
            return []
        return [p for p in self._directory.iterdir() if p.is_file() and p.name.endswith(_SUFFIX)]
