"""Size-bounded cache store and its symlink re-homing hooks."""

from __future__ import annotations

from crawlcache.cache.rehome import make_rehome_hook, rehome, split_dependency_path
from crawlcache.cache.store import CacheEntry, CacheOptions, CacheStore, SaveCallback

__all__ = [
    "CacheEntry",
    "CacheOptions",
    "CacheStore",
    "SaveCallback",
    "make_rehome_hook",
    "rehome",
    "split_dependency_path",
]
