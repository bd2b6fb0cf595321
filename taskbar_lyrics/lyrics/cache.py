"""
Two-tier lyric cache for taskbar-lyrics.

Each provider caches the raw payloads it resolved under its own namespace.
A namespace is one in-memory map plus one JSON file in the cache directory:

    <cache dir>/lrclib-lyrics.json
    {
      "spotify|songtitle|artistname": {
        "SyncedLyrics": "[00:01.00]First line...",
        "PlainLyrics": null
      }
    }

Keys are built by build_cache_key(): normalize(source)|normalize(title)|normalize(artist).

Sharing:
    The CacheService is created once by the composition root and handed to
    every provider. Providers asking for the same namespace share the same
    state (memory map, disk map and lock), so two provider instances never
    race on one file.

Locking:
    Disk initialisation and disk writes for a namespace are serialised by the
    namespace lock. The memory map is read and written without the lock.

Failure policy:
    Lyrics are optional. A cache file that cannot be read is treated as
    empty, and a write that fails is dropped; both are logged at DEBUG and
    never raised. The in-memory tier keeps working either way.

Usage:
    service = CacheService(config.cache.directory)
    cache = service.namespace("lrclib-lyrics.json")

    key = build_cache_key("Spotify", "Song", "Artist")
    payload = cache.get(key)
    if payload is None:
        cache.store(key, CachedPayload(synced_lyrics=lrc_text))
"""

import json
import os
import threading
from pathlib import Path
from typing import Any

from taskbar_lyrics.core.exceptions import CacheError
from taskbar_lyrics.core.logger import get_logger
from taskbar_lyrics.lyrics.matching import normalize
from taskbar_lyrics.lyrics.models import CachedPayload

logger = get_logger(__name__)


def build_cache_key(source_app: str | None, title: str | None, artist: str | None) -> str:
    """Build the normalized cache key 'source|title|artist'."""
    return f"{normalize(source_app)}|{normalize(title)}|{normalize(artist)}"


class _NamespaceState:
    """Mutable state shared by every handle of one namespace."""

    def __init__(self) -> None:
        self.memory: dict[str, CachedPayload] = {}
        self.lock = threading.Lock()
        # None until the file has been read once
        self.disk: dict[str, dict[str, Any]] | None = None


class LyricCache:
    """
    Handle on one cache namespace.

    Instances are cheap and are normally obtained from
    CacheService.namespace(); all handles for a namespace share state.

    Attributes:
        namespace: Cache file name, e.g. "netease-lyrics.json".
        path: Full path of the namespace's JSON file.
    """

    def __init__(self, namespace: str, path: Path, state: _NamespaceState) -> None:
        self.namespace = namespace
        self.path = path
        self._state = state

    def get(self, key: str) -> CachedPayload | None:
        """
        Look a key up in memory, then on disk.

        A disk hit is promoted into the memory map. Returns None on a miss.
        """
        cached = self._state.memory.get(key)
        if cached is not None:
            return cached

        with self._state.lock:
            disk = self._ensure_disk_loaded()
            payload = CachedPayload.from_dict(disk.get(key))

        if payload is not None:
            self._state.memory[key] = payload
        return payload

    def store(self, key: str, payload: CachedPayload) -> None:
        """
        Store a payload in memory and persist the namespace file.

        Disk write failures are logged and dropped.
        """
        self._state.memory[key] = payload

        with self._state.lock:
            disk = self._ensure_disk_loaded()
            disk[key] = payload.to_dict()
            try:
                _write_cache_file(self.path, disk)
            except CacheError as e:
                logger.debug(f"Cache write skipped for {self.namespace}: {e.message}")

    def clear(self) -> None:
        """
        Wipe the memory map and delete the namespace file.

        Idempotent: a missing file is fine, and calling it twice is harmless.
        """
        self._state.memory.clear()

        with self._state.lock:
            self._state.disk = {}
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                logger.debug(f"Could not delete cache file {self.path}: {e}")

    def __len__(self) -> int:
        with self._state.lock:
            return len(self._ensure_disk_loaded())

    def _ensure_disk_loaded(self) -> dict[str, dict[str, Any]]:
        # Caller holds the namespace lock
        if self._state.disk is None:
            try:
                self._state.disk = _read_cache_file(self.path)
            except CacheError as e:
                logger.debug(f"Ignoring unreadable cache {self.namespace}: {e.message}")
                self._state.disk = {}
        return self._state.disk


class CacheService:
    """
    Owner of every cache namespace under one storage directory.

    Constructed once at the composition root and injected into providers.
    Separate services (e.g. one per test) are fully independent.

    Thread Safety:
        namespace() may be called from any thread; the first call for a
        name creates its shared state under an internal lock.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self._states: dict[str, _NamespaceState] = {}
        self._states_lock = threading.Lock()

    def namespace(self, name: str) -> LyricCache:
        """Return a handle for the namespace stored in file `name`."""
        with self._states_lock:
            state = self._states.get(name)
            if state is None:
                state = _NamespaceState()
                self._states[name] = state
        return LyricCache(name, self.directory / name, state)

    def clear(self, name: str) -> None:
        """Wipe one namespace (memory and file)."""
        self.namespace(name).clear()

    @property
    def namespaces(self) -> list[str]:
        """Names of the namespaces opened so far."""
        with self._states_lock:
            return sorted(self._states)


def _read_cache_file(path: Path) -> dict[str, dict[str, Any]]:
    """
    Read a namespace file.

    Returns {} when the file does not exist.

    Raises:
        CacheError: If the file cannot be read, is not JSON, or is not an object.
    """
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CacheError(
            f"Failed to read cache file: {e}",
            details={"file_path": str(path), "original_error": str(e)}
        ) from e

    if not isinstance(data, dict):
        raise CacheError(
            "Cache file is not a JSON object",
            details={"file_path": str(path)}
        )

    # Entries of an unexpected shape are dropped individually
    return {key: value for key, value in data.items() if isinstance(value, dict)}


def _write_cache_file(path: Path, data: dict[str, dict[str, Any]]) -> None:
    """
    Write a namespace file through a temporary file and an atomic rename.

    Raises:
        CacheError: If the directory or file cannot be written.
    """
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, path)
    except OSError as e:
        raise CacheError(
            f"Failed to write cache file: {e}",
            details={"file_path": str(path), "original_error": str(e)}
        ) from e
