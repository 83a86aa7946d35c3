"""Directory walking, path filtering and package discovery."""

from __future__ import annotations

from crawlcache.scanner.files import FileScanner
from crawlcache.scanner.filters import FilterSpec, PathFilter, filter_paths
from crawlcache.scanner.packages import PackageTopologyScanner
from crawlcache.scanner.walker import DirectoryWalker, WalkResult

__all__ = [
    "DirectoryWalker",
    "FileScanner",
    "FilterSpec",
    "PackageTopologyScanner",
    "PathFilter",
    "WalkResult",
    "filter_paths",
]
