"""Package root discovery for local workspaces and installed dependencies."""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path

from crawlcache.cache.store import CacheOptions, CacheStore
from crawlcache.constants.cache import LOCAL_PACKAGES_CACHE_KEY, PACKAGES_CACHE_KEY
from crawlcache.constants.scanner import SCOPED_PACKAGE_PREFIX
from crawlcache.exceptions import IssueCode, IssueReport
from crawlcache.io import is_within, normalize_path, resolve_real_path
from crawlcache.scanner.walker import DirectoryWalker
from crawlcache.types.common import JsonObject
from crawlcache.types.config import PackagesConfig, WalkerConfig
from crawlcache.types.scanner import IgnoreStrategy

logger = logging.getLogger(__name__)

_DEEP_SUFFIX = "?deep"


class PackageTopologyScanner:
    """Enumerate package roots: directories that hold a manifest file.

    Local packages are found by walking a root. Installed packages are the
    entries of the root's dependency folder, followed (unless ``no_depth``)
    by their own local and installed packages.
    """

    def __init__(
        self,
        config: PackagesConfig | None = None,
        walker: DirectoryWalker | None = None,
        *,
        store: CacheStore | None = None,
    ) -> None:
        self.config = config or PackagesConfig()
        self.store = store
        self.walker = walker or DirectoryWalker(
            WalkerConfig(dependency_folder=self.config.dependency_folder),
            store=store,
        )
        self.report = IssueReport()
        self._exclude = re.compile(self.config.packages_exclude_pattern)

    def list_packages(self, root: str | os.PathLike[str], shallow: bool = True) -> list[str]:
        """Return package directories below *root*, excluding *root* itself.

        Shallow listings leave out anything matching the exclusion pattern
        relative to *root* and do not walk dependency folders.
        """
        directory = normalize_path(root)
        member = directory if shallow else directory + _DEEP_SUFFIX
        cached = self._cached(LOCAL_PACKAGES_CACHE_KEY, member)
        if cached is not None:
            return cached

        ignore = None if shallow else (IgnoreStrategy.SKIP_DOT_FOLDERS,)
        result = self.walker.walk(directory, ignore=ignore)
        self.report.extend(result.report)

        packages: list[str] = []
        for path in result.paths:
            parent, _, name = path.rpartition("/")
            if name != self.config.manifest_filename or parent == directory:
                continue
            if shallow and self._exclude.search(path[len(directory) + 1 :]):
                continue
            packages.append(parent)

        if self.store is not None:
            self.store.set_member(LOCAL_PACKAGES_CACHE_KEY, member, list(packages), CacheOptions(persist=False))
        return packages

    def list_installed_packages(self, root: str | os.PathLike[str], no_depth: bool = False) -> list[str]:
        """Return installed packages of *root* in discovery order."""
        directory = normalize_path(root)
        folder = f"{directory}/{self.config.dependency_folder}"
        if not no_depth:
            cached = self._cached(PACKAGES_CACHE_KEY, folder)
            if cached is not None:
                return cached
            logger.info("Scanning installed packages under %s", folder)

        packages = self._collect_installed(directory, no_depth, set(), set())
        if not no_depth and self.store is not None:
            self.store.set_member(PACKAGES_CACHE_KEY, folder, list(packages), CacheOptions(persist=True))
        return packages

    def list_all_packages(
        self,
        root: str | os.PathLike[str],
        no_depth: bool = False,
        skip_local_packages: bool = False,
    ) -> list[str]:
        """Return installed packages followed by local packages."""
        directory = normalize_path(root)
        packages = self.list_installed_packages(directory, no_depth)
        if skip_local_packages or is_within(directory, self.config.dependency_folder):
            return packages
        seen = set(packages)
        packages.extend(path for path in self.list_packages(directory) if path not in seen)
        return packages

    def read_manifest(self, package_dir: str | os.PathLike[str]) -> JsonObject | None:
        """Return the parsed manifest of *package_dir*, or None when absent or unreadable."""
        path = Path(package_dir) / self.config.manifest_filename
        if not path.is_file():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.report.record(IssueCode.UNREADABLE, path.as_posix(), f"cannot read manifest ({exc})")
            return None
        if not isinstance(payload, dict):
            self.report.record(IssueCode.UNREADABLE, path.as_posix(), "manifest is not a JSON object")
            return None
        return payload

    def find_package_names(self, root: str | os.PathLike[str]) -> dict[str, str]:
        """Map manifest ``name`` to package directory; the first package found wins."""
        names: dict[str, str] = {}
        for package_dir in self.list_all_packages(root):
            manifest = self.read_manifest(package_dir)
            name = manifest.get("name") if manifest else None
            if isinstance(name, str) and name:
                names.setdefault(name, package_dir)
        return names

    def _collect_installed(
        self,
        directory: str,
        no_depth: bool,
        seen: set[str],
        seen_canonical: set[str],
    ) -> list[str]:
        packages: list[str] = []
        for package_dir in self._installed_dirs(f"{directory}/{self.config.dependency_folder}"):
            if package_dir in seen:
                continue
            try:
                canonical = resolve_real_path(package_dir)
            except OSError as exc:
                self.report.record(IssueCode.SYMLINK_RESOLUTION, package_dir, f"keeping unresolved path ({exc})")
                canonical = package_dir
            if canonical in seen_canonical:
                logger.debug("Skipping already listed package %s -> %s", package_dir, canonical)
                continue
            seen.add(package_dir)
            seen_canonical.add(canonical)
            packages.append(package_dir)
            if no_depth:
                continue

            for nested in self.list_packages(package_dir):
                if nested not in seen:
                    seen.add(nested)
                    packages.append(nested)
            packages.extend(self._collect_installed(package_dir, False, seen, seen_canonical))
        return packages

    def _installed_dirs(self, folder: str) -> list[str]:
        """Return the dependency-folder entries that hold a readable manifest."""
        candidates: list[str] = []
        for name in _sorted_subdirectories(folder):
            path = f"{folder}/{name}"
            if name.startswith(SCOPED_PACKAGE_PREFIX):
                candidates.extend(f"{path}/{scoped}" for scoped in _sorted_subdirectories(path))
            else:
                candidates.append(path)
        return [path for path in candidates if self.read_manifest(path) is not None]

    def _cached(self, key: str, member: str) -> list[str] | None:
        if self.store is None:
            return None
        cached = self.store.get_member(key, member)
        return list(cached) if isinstance(cached, list) else None


def _sorted_subdirectories(folder: str) -> list[str]:
    try:
        with os.scandir(folder) as iterator:
            return sorted(entry.name for entry in iterator if _is_directory(entry))
    except OSError:
        return []


def _is_directory(entry: os.DirEntry[str]) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False
