"""Constants used by the cache store and its on-disk records."""

from __future__ import annotations

CACHE_RECORD_VERSION: int = 1
CACHE_FOLDER: str = ".cache"
CACHE_FILE_SUFFIX: str = ".json"
CACHE_TEMP_PREFIX: str = ".record-"
CACHE_TEMP_SUFFIX: str = ".tmp"

DEFAULT_MEMORY_THRESHOLD: int = 5_000_000
DEFAULT_IN_MEMORY: bool = True
DEFAULT_PERSIST: bool = True

# Well-known keys shared by the scanners.
RSCANDIR_CACHE_KEY: str = "rscandir"
LOCAL_PACKAGES_CACHE_KEY: str = "localPackages"
PACKAGES_CACHE_KEY: str = "packages"
LOCAL_FILES_CACHE_KEY: str = "localFiles"
