"""Typed configuration structures for the crawler and the cache store."""

from __future__ import annotations

from dataclasses import dataclass

from crawlcache.constants.cache import (
    CACHE_FOLDER,
    DEFAULT_IN_MEMORY,
    DEFAULT_MEMORY_THRESHOLD,
    DEFAULT_PERSIST,
)
from crawlcache.constants.scanner import (
    DEFAULT_NUM_FILES_THRESHOLD,
    DEFAULT_RECURSION_THRESHOLD,
    DEPENDENCY_FOLDER,
    MANIFEST_FILENAME,
    PACKAGES_EXCLUDE_PATTERN,
)
from crawlcache.types.scanner import IgnoreStrategy, SortStrategy


@dataclass(frozen=True)
class CacheConfig:
    """Cache folder, tier defaults and the in-memory byte budget."""

    folder: str = CACHE_FOLDER
    in_memory: bool = DEFAULT_IN_MEMORY
    persist: bool = DEFAULT_PERSIST
    memory_threshold: int = DEFAULT_MEMORY_THRESHOLD


@dataclass(frozen=True)
class WalkerConfig:
    """Walk defaults and the thresholds that make a walk worth caching."""

    recursion_threshold: int = DEFAULT_RECURSION_THRESHOLD
    num_files_threshold: int = DEFAULT_NUM_FILES_THRESHOLD
    sort: SortStrategy = SortStrategy.DEPTH_FIRST
    ignore: tuple[IgnoreStrategy, ...] = (
        IgnoreStrategy.SKIP_DEPENDENCY_FOLDER,
        IgnoreStrategy.SKIP_DOT_FOLDERS,
    )
    dependency_folder: str = DEPENDENCY_FOLDER


@dataclass(frozen=True)
class PackagesConfig:
    """Package manifest naming and the local-package exclusion rule."""

    dependency_folder: str = DEPENDENCY_FOLDER
    manifest_filename: str = MANIFEST_FILENAME
    packages_exclude_pattern: str = PACKAGES_EXCLUDE_PATTERN
