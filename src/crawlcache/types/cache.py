"""Typed cache record structures persisted to disk."""

from __future__ import annotations

from typing import TypedDict

from crawlcache.types.common import JsonValue


class CacheRecord(TypedDict):
    """On-disk form of a single cache entry."""

    version: int
    key: str
    value: JsonValue
    created_at: float
    last_modified_at: float
    prefix: str
    persist: bool
    in_memory: bool
    size_bytes: int
