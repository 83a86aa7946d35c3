"""Collect one named folder from every package in a tree."""

from __future__ import annotations

import logging
import os

from crawlcache.cache.store import CacheOptions, CacheStore
from crawlcache.constants.cache import LOCAL_FILES_CACHE_KEY
from crawlcache.exceptions import IssueCode, IssueReport
from crawlcache.io import is_within, normalize_path, resolve_real_path
from crawlcache.scanner.packages import PackageTopologyScanner
from crawlcache.scanner.walker import DirectoryWalker
from crawlcache.types.config import PackagesConfig

logger = logging.getLogger(__name__)


class FileScanner:
    """List the files of ``<package>/<folder>`` across all packages of a root.

    Listings of installed packages rarely change, so they are kept in the
    ``localFiles`` cache key under the canonical folder path and persisted.
    """

    def __init__(
        self,
        config: PackagesConfig | None = None,
        walker: DirectoryWalker | None = None,
        packages: PackageTopologyScanner | None = None,
        *,
        store: CacheStore | None = None,
    ) -> None:
        self.config = config or PackagesConfig()
        self.store = store
        self.packages = packages or PackageTopologyScanner(self.config, walker, store=store)
        self.walker = walker or self.packages.walker
        self.report = IssueReport()

    def read_all_files(
        self,
        folder: str,
        root: str | os.PathLike[str],
        skip_local_packages: bool = False,
    ) -> list[str]:
        """Return files of *folder* in every package (installed, then local), then in *root*."""
        directory = normalize_path(root)
        files: list[str] = []
        for package_dir in self.packages.list_all_packages(directory, skip_local_packages=skip_local_packages):
            target = f"{package_dir}/{folder}"
            if os.path.isdir(target):
                files.extend(self._package_files(package_dir, target))
        files.extend(self.read_local_files(folder, directory))
        return files

    def read_local_files(self, folder: str, root: str | os.PathLike[str]) -> list[str]:
        """Return files of ``<root>/<folder>``, or an empty list when it is missing."""
        target = normalize_path(os.path.join(os.fspath(root), folder))
        cacheable = is_within(target, self.config.dependency_folder)
        if cacheable:
            cached = self._cached(target)
            if cached is not None:
                return cached
        if not os.path.isdir(target):
            logger.debug("Folder %s does not exist, nothing to read", target)
            return []

        files = self._walk(target)
        if cacheable:
            self._remember(target, files)
        return files

    def _package_files(self, package_dir: str, target: str) -> list[str]:
        if not is_within(package_dir, self.config.dependency_folder):
            return self._walk(target)

        try:
            cache_key = resolve_real_path(target)
        except OSError as exc:
            self.report.record(IssueCode.SYMLINK_RESOLUTION, target, f"keeping unresolved path ({exc})")
            cache_key = target
        cached = self._cached(cache_key)
        if cached is not None:
            return cached

        files = self._walk(target)
        self._remember(cache_key, files)
        return files

    def _walk(self, target: str) -> list[str]:
        result = self.walker.walk(target)
        self.report.extend(result.report)
        return result.paths

    def _cached(self, cache_key: str) -> list[str] | None:
        if self.store is None:
            return None
        cached = self.store.get_member(LOCAL_FILES_CACHE_KEY, cache_key)
        return list(cached) if isinstance(cached, list) else None

    def _remember(self, cache_key: str, files: list[str]) -> None:
        if self.store is not None:
            self.store.set_member(LOCAL_FILES_CACHE_KEY, cache_key, list(files), CacheOptions(persist=True))
