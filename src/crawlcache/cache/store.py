"""Size-bounded key/value store with an in-memory tier and on-disk spillover.

Every entry lives in one registry owned by the store. Writing a value keeps
it in memory until the total size crosses ``memory_threshold``; the entries
modified longest ago are then written to ``<root>/<folder>/<prefix><key>.json``
and dropped from memory. Reads of a spilled entry go straight to its file.
Entries marked ``persist`` are written again at shutdown so the next process
can warm itself with ``read``.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
import os
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path

from crawlcache.constants.cache import CACHE_FILE_SUFFIX, CACHE_RECORD_VERSION
from crawlcache.exceptions import IssueCode, IssueReport
from crawlcache.io import json_size, load_json_file, normalize_path, remove_file, write_json_atomic
from crawlcache.types.cache import CacheRecord
from crawlcache.types.common import JsonValue
from crawlcache.types.config import CacheConfig

logger = logging.getLogger(__name__)

type SaveCallback = Callable[[str, JsonValue], bool | None]


@dataclass(frozen=True)
class CacheOptions:
    """Per-entry settings applied by ``CacheStore.set``.

    ``None`` leaves a setting as it is, except ``in_memory`` which falls back
    to the configured default on every write so updated entries return to
    memory after being spilled.
    """

    persist: bool | None = None
    in_memory: bool | None = None
    prefix: str | None = None


@dataclass
class CacheEntry:
    """One cached value and its bookkeeping."""

    key: str
    value: JsonValue = None
    created_at: float = 0.0
    last_modified_at: float = 0.0
    size_bytes: int = 0
    in_memory: bool = True
    persist: bool = True
    prefix: str = ""
    order: int = 0

    @property
    def spilled(self) -> bool:
        """True when the value only exists on disk."""
        return not self.in_memory and self.value is None

    @property
    def dirty(self) -> bool:
        """True when the entry belongs on disk but still holds its value."""
        return not self.in_memory and self.value is not None

    def to_record(self, *, in_memory: bool | None = None) -> CacheRecord:
        return {
            "version": CACHE_RECORD_VERSION,
            "key": self.key,
            "value": self.value,
            "created_at": self.created_at,
            "last_modified_at": self.last_modified_at,
            "prefix": self.prefix,
            "persist": self.persist,
            "in_memory": self.in_memory if in_memory is None else in_memory,
            "size_bytes": self.size_bytes,
        }

    @classmethod
    def from_record(cls, record: CacheRecord, *, order: int) -> CacheEntry:
        in_memory = record["in_memory"]
        return cls(
            key=record["key"],
            value=record["value"] if in_memory else None,
            created_at=record["created_at"],
            last_modified_at=record["last_modified_at"],
            size_bytes=record["size_bytes"] if in_memory else 0,
            in_memory=in_memory,
            persist=record["persist"],
            prefix=record["prefix"],
            order=order,
        )


class CacheStore:
    """Keyed cache shared by the walker and the package and file scanners."""

    def __init__(
        self,
        config: CacheConfig | None = None,
        root: str | os.PathLike[str] = ".",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or CacheConfig()
        self.root = normalize_path(root)
        self.report = IssueReport()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._callbacks: list[SaveCallback] = []
        self._temporary: dict[str, None] = {}
        self._order = itertools.count()
        self._lock = threading.RLock()

    @property
    def folder(self) -> Path:
        return Path(self.root) / self.config.folder

    def file_for(self, key: str) -> Path:
        """Return the canonical file location of *key*."""
        entry = self._entries.get(key)
        prefix = entry.prefix if entry is not None else ""
        return self.folder / f"{prefix}{key}{CACHE_FILE_SUFFIX}"

    def has(self, key: str) -> bool:
        return key in self._entries

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def keys(self) -> list[str]:
        return list(self._entries)

    def describe(self, key: str) -> CacheEntry | None:
        """Return a detached copy of the entry for *key*."""
        with self._lock:
            entry = self._entries.get(key)
            return dataclasses.replace(entry) if entry is not None else None

    def in_memory_size(self) -> int:
        """Total size in bytes of the values currently held in memory."""
        with self._lock:
            return sum(entry.size_bytes for entry in self._entries.values() if entry.in_memory)

    def set(self, key: str, value: JsonValue, options: CacheOptions | None = None) -> None:
        """Create or update *key*, then enforce the memory threshold."""
        size = json_size(value)
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None:
                entry = CacheEntry(
                    key=key,
                    created_at=now,
                    persist=self.config.persist,
                    order=next(self._order),
                )
                self._entries[key] = entry

            options = options or CacheOptions()
            if options.persist is not None:
                entry.persist = options.persist
            if entry.persist:
                self._temporary.pop(key, None)
            if options.prefix is not None:
                entry.prefix = options.prefix
            entry.in_memory = self.config.in_memory if options.in_memory is None else options.in_memory
            entry.value = value
            entry.size_bytes = size
            entry.last_modified_at = now
            self.invalidate()

    def get(self, key: str, default: JsonValue = None) -> JsonValue:
        """Return the value for *key*, reading it from disk when it was spilled."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if not entry.spilled:
                return entry.value
            record = self._load_record(self.file_for(key))
        if record is None:
            return default
        return record["value"]

    def get_member(self, key: str, member: str) -> JsonValue:
        """Return ``value[member]`` for a mapping-valued *key*, or None."""
        value = self.get(key)
        if isinstance(value, dict):
            return value.get(member)
        return None

    def set_member(self, key: str, member: str, member_value: JsonValue, options: CacheOptions | None = None) -> None:
        """Store *member_value* under *member* of the mapping held by *key*."""
        with self._lock:
            value = self.get(key)
            mapping = dict(value) if isinstance(value, dict) else {}
            mapping[member] = member_value
            self.set(key, mapping, options)

    def remove(self, key: str) -> bool:
        """Delete the file for *key* and drop the entry."""
        with self._lock:
            if key not in self._entries:
                return False
            remove_file(self.file_for(key))
            del self._entries[key]
            self._temporary.pop(key, None)
            return True

    def clear(self, filter_key: str | None = None, remove_files: bool = False) -> None:
        """Drop one entry or all of them, optionally deleting their files."""
        with self._lock:
            for key in list(self._entries):
                if filter_key is not None and key != filter_key:
                    continue
                if remove_files:
                    remove_file(self.file_for(key))
                del self._entries[key]
                self._temporary.pop(key, None)

    def on_save(self, callback: SaveCallback) -> None:
        """Run *callback(key, value)* before each persisted key is written.

        A callback returning ``True`` takes over the write for that key, except
        when the entry is being spilled out of memory: the entry file is
        written anyway.
        """
        self._callbacks.append(callback)

    def save(
        self,
        filter_key: str | None = None,
        remove_from_memory: bool = False,
        override_persist: bool = False,
    ) -> None:
        """Write matching entries to disk.

        Entries without ``persist`` are skipped unless ``override_persist`` is
        set, in which case they are written as temporary files that
        ``shutdown`` deletes.
        """
        with self._lock:
            for key, entry in list(self._entries.items()):
                if filter_key is not None and key != filter_key:
                    continue
                self._save_entry(entry, remove_from_memory=remove_from_memory, override_persist=override_persist)

    def invalidate(self) -> None:
        """Spill entries to disk until the in-memory total fits the threshold."""
        with self._lock:
            for entry in list(self._entries.values()):
                if entry.dirty:
                    self._save_entry(entry, remove_from_memory=True, override_persist=True)

            threshold = self.config.memory_threshold
            total = sum(entry.size_bytes for entry in self._entries.values())
            flushed = 0
            attempted: set[str] = set()

            for entry in list(self._entries.values()):
                if entry.in_memory and entry.size_bytes > threshold:
                    logger.debug("Spilling oversized cache key %s (%d bytes)", entry.key, entry.size_bytes)
                    flushed += entry.size_bytes
                    attempted.add(entry.key)
                    self._save_entry(entry, remove_from_memory=True, override_persist=True)

            while total - flushed > threshold:
                candidates = [
                    entry for entry in self._entries.values() if entry.in_memory and entry.key not in attempted
                ]
                if not candidates:
                    break
                oldest = min(candidates, key=lambda entry: (entry.last_modified_at, entry.order))
                logger.debug("Spilling least recently modified cache key %s", oldest.key)
                flushed += oldest.size_bytes
                attempted.add(oldest.key)
                self._save_entry(oldest, remove_from_memory=True, override_persist=True)

    def read(self, key: str | None = None, overwrite: bool = False) -> CacheEntry | None:
        """Rehydrate entries from the cache folder left by a previous run.

        With *key* and without *overwrite*, entries already registered are
        kept as they are. Returns a copy of the entry for *key* when given.
        """
        with self._lock:
            folder = self.folder
            if not folder.is_dir():
                return None
            paths = sorted(folder.rglob(f"*{CACHE_FILE_SUFFIX}"))
            if key is None and paths:
                logger.info("Reading local cache from %s", folder)

            for path in paths:
                record = self._load_record(path)
                if record is None:
                    continue
                record_key = record["key"]
                if key is None or overwrite or record_key not in self._entries:
                    self._rehydrate(record)

            self.invalidate()
            return self.describe(key) if key is not None else None

    def write_record(self, path: Path, record: CacheRecord) -> bool:
        """Write *record* to *path*, recording a failure instead of raising."""
        try:
            write_json_atomic(path=path, payload=record)
        except OSError as exc:
            self.report.record(IssueCode.WRITE_FAILURE, path.as_posix(), f"cannot write cache record ({exc})")
            return False
        return True

    def shutdown(self) -> None:
        """Persist every eligible entry and delete temporary files."""
        with self._lock:
            self.save()
            for key in list(self._temporary):
                remove_file(self.file_for(key))
            self._temporary.clear()

    def _save_entry(self, entry: CacheEntry, *, remove_from_memory: bool, override_persist: bool) -> bool:
        if not entry.persist and not override_persist:
            return False
        if entry.spilled:
            return True

        if entry.persist:
            # get reads spilled values back from the entry file, so spills always write it.
            if self._run_callbacks(entry) and not remove_from_memory:
                return True
        else:
            self._temporary[entry.key] = None

        record = entry.to_record(in_memory=not remove_from_memory and entry.in_memory)
        if not self.write_record(self.file_for(entry.key), record):
            return False
        if remove_from_memory:
            entry.value = None
            entry.size_bytes = 0
            entry.in_memory = False
        return True

    def _run_callbacks(self, entry: CacheEntry) -> bool:
        """Run save callbacks, returning True when one of them took over the write."""
        handled = False
        for callback in self._callbacks:
            try:
                handled = bool(callback(entry.key, entry.value)) or handled
            except OSError as exc:
                self.report.record(IssueCode.WRITE_FAILURE, entry.key, f"save callback failed ({exc})")
        return handled

    def _rehydrate(self, record: CacheRecord) -> None:
        existing = self._entries.get(record["key"])
        order = existing.order if existing is not None else next(self._order)
        self._entries[record["key"]] = CacheEntry.from_record(record, order=order)

    def _load_record(self, path: Path) -> CacheRecord | None:
        try:
            payload = load_json_file(path)
        except FileNotFoundError:
            self.report.record(IssueCode.NOT_FOUND, path.as_posix(), "cache record is missing")
            return None
        except (OSError, ValueError) as exc:
            self.report.record(IssueCode.MALFORMED_CACHE, path.as_posix(), f"cannot parse cache record ({exc})")
            return None

        record = _normalize_record(payload)
        if record is None:
            self.report.record(IssueCode.MALFORMED_CACHE, path.as_posix(), "unexpected cache record layout")
        return record


def _normalize_record(payload: object) -> CacheRecord | None:
    if not isinstance(payload, dict):
        return None
    if payload.get("version") != CACHE_RECORD_VERSION:
        return None

    key = payload.get("key")
    prefix = payload.get("prefix", "")
    persist = payload.get("persist", True)
    in_memory = payload.get("in_memory", True)
    created_at = payload.get("created_at", 0.0)
    last_modified_at = payload.get("last_modified_at", 0.0)

    if not isinstance(key, str) or not key:
        return None
    if "value" not in payload:
        return None
    if not isinstance(prefix, str):
        return None
    if not isinstance(persist, bool) or not isinstance(in_memory, bool):
        return None
    if not _is_timestamp(created_at) or not _is_timestamp(last_modified_at):
        return None

    value = payload["value"]
    return {
        "version": CACHE_RECORD_VERSION,
        "key": key,
        "value": value,
        "created_at": float(created_at),
        "last_modified_at": float(last_modified_at),
        "prefix": prefix,
        "persist": persist,
        "in_memory": in_memory,
        "size_bytes": json_size(value),
    }


def _is_timestamp(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
