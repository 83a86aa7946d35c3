"""Shared type aliases for Crawlcache."""

from .cache import CacheRecord
from .common import JsonObject, JsonScalar, JsonValue, PathResolver
from .config import CacheConfig, PackagesConfig, WalkerConfig
from .scanner import FilterType, IgnoreStrategy, SortStrategy

__all__ = [
    "CacheConfig",
    "CacheRecord",
    "FilterType",
    "IgnoreStrategy",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "PackagesConfig",
    "PathResolver",
    "SortStrategy",
    "WalkerConfig",
]
