"""Configuration filenames and accepted section keys."""

from __future__ import annotations

CONFIG_FILENAME: str = "crawlcache.yaml"

CACHE_SECTION: str = "cache"
RSCANDIR_SECTION: str = "rscandir"
PACKAGES_SECTION: str = "packages"

CACHE_KEYS: frozenset[str] = frozenset({"folder", "in_memory", "persist", "memory_threshold"})
RSCANDIR_KEYS: frozenset[str] = frozenset({"recursion_threshold", "num_files_threshold", "sort", "ignore"})
PACKAGES_KEYS: frozenset[str] = frozenset({"dependency_folder", "manifest_filename", "packages_exclude_pattern"})
