"""Recursive directory listing with ignore, prune and sort strategies."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from crawlcache.cache.store import CacheOptions, CacheStore
from crawlcache.constants.cache import RSCANDIR_CACHE_KEY
from crawlcache.constants.scanner import GLOBSTAR, WILDCARD_CHARACTER
from crawlcache.exceptions import IssueCode, IssueReport
from crawlcache.io import has_unusable_character, normalize_path
from crawlcache.scanner.filters import FilterSpec, PathFilter
from crawlcache.types.config import WalkerConfig
from crawlcache.types.scanner import FilterType, IgnoreStrategy, SortStrategy

logger = logging.getLogger(__name__)


@dataclass
class WalkResult:
    """Flat, ordered listing produced by one walk."""

    paths: list[str] = field(default_factory=list)
    recursions: int = 0
    report: IssueReport = field(default_factory=IssueReport)
    from_cache: bool = False

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)


@dataclass(frozen=True)
class _WalkPlan:
    sort: SortStrategy
    ignore: frozenset[IgnoreStrategy]
    prune: PathFilter | None
    include_directories: bool


class DirectoryWalker:
    """List every file under a root as one flat, stably ordered sequence.

    Directory entries are read in name order. Ignored directories are neither
    emitted nor descended. A pruning filter stops descent without hiding the
    directory itself. Walks that are large enough are kept in the shared
    cache store under the ``rscandir`` key.
    """

    def __init__(self, config: WalkerConfig | None = None, *, store: CacheStore | None = None) -> None:
        self.config = config or WalkerConfig()
        self.store = store

    def walk(
        self,
        root: str | os.PathLike[str],
        path_filter: FilterSpec | None = None,
        *,
        prune: FilterSpec | None = None,
        sort: SortStrategy | None = None,
        ignore: Iterable[IgnoreStrategy] | None = None,
        include_directories: bool = False,
    ) -> WalkResult:
        """Walk *root* and return its files (and optionally directories)."""
        report = IssueReport()
        root_text = os.fspath(root)
        filters = [PathFilter.coerce(path_filter)]
        if WILDCARD_CHARACTER in root_text:
            root_text, root_filter = _split_wildcard_root(root_text)
            filters.insert(0, root_filter)
        final_filters = [item for item in filters if item is not None]

        directory = normalize_path(root_text)
        if has_unusable_character(directory):
            report.record(IssueCode.UNUSABLE_PATH, directory, "requested walk of an unusable directory name")
            return WalkResult(report=report)

        plan = self._plan(final_filters, PathFilter.coerce(prune), sort, ignore, include_directories)
        cache_key = _cache_key(directory, plan, final_filters, self.config)
        cached = self._cached_paths(cache_key)
        if cached is not None:
            return WalkResult(paths=cached, report=report, from_cache=True)

        if not os.path.isdir(directory):
            report.record(IssueCode.NOT_FOUND, directory, "attempted to walk a directory that does not exist")
            return WalkResult(report=report)

        paths, recursions = self._walk_tree(directory, plan, report, frozenset({os.path.realpath(directory)}))
        for item in final_filters:
            paths = item.filter_list(paths)

        self._remember(cache_key, paths, recursions)
        return WalkResult(paths=paths, recursions=recursions, report=report)

    def walk_directories(self, root: str | os.PathLike[str], path_filter: FilterSpec | None = None) -> list[str]:
        """Return only the directories found under *root*."""
        result = self.walk(root, path_filter, include_directories=True)
        return [path for path in result.paths if os.path.isdir(path)]

    def is_ignored(self, name: str, ignore: Iterable[IgnoreStrategy] | None = None) -> bool:
        """Return True when a directory called *name* is skipped by the ignore strategies."""
        strategies = self.config.ignore if ignore is None else tuple(ignore)
        if IgnoreStrategy.SKIP_DEPENDENCY_FOLDER in strategies and name == self.config.dependency_folder:
            return True
        return IgnoreStrategy.SKIP_DOT_FOLDERS in strategies and name.startswith(".")

    def _plan(
        self,
        final_filters: list[PathFilter],
        prune: PathFilter | None,
        sort: SortStrategy | None,
        ignore: Iterable[IgnoreStrategy] | None,
        include_directories: bool,
    ) -> _WalkPlan:
        strategies = frozenset(self.config.ignore if ignore is None else ignore)
        if IgnoreStrategy.GITIGNORE in strategies:
            logger.debug("The gitignore ignore strategy is not supported and has no effect")
        if prune is None:
            prune = next((item for item in final_filters if item.exclude), None)
        return _WalkPlan(
            sort=SortStrategy(sort or self.config.sort),
            ignore=strategies,
            prune=prune,
            include_directories=include_directories,
        )

    def _walk_tree(
        self,
        directory: str,
        plan: _WalkPlan,
        report: IssueReport,
        ancestors: frozenset[str],
    ) -> tuple[list[str], int]:
        """Return the ordered listing of *directory* and the number of descents below it."""
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            report.record(IssueCode.UNREADABLE, directory, f"cannot list directory ({exc})")
            return [], 0

        level: list[str] = []
        nested: list[str] = []
        recursions = 0
        for entry in entries:
            path = f"{directory}/{entry.name}"
            try:
                is_dir = entry.is_dir()
                if not is_dir and entry.is_symlink() and not os.path.exists(path):
                    report.record(IssueCode.UNREADABLE, path, "broken symbolic link")
                    continue
            except OSError as exc:
                report.record(IssueCode.UNREADABLE, path, f"cannot stat entry ({exc})")
                continue

            if not is_dir:
                level.append(path)
                continue

            if self.is_ignored(entry.name, plan.ignore):
                continue
            if has_unusable_character(path):
                report.record(IssueCode.UNUSABLE_PATH, path, "directory name holds unusable characters")
                continue
            if plan.include_directories:
                level.append(path)
            if plan.prune is not None and not plan.prune.accepts(path):
                continue

            canonical = os.path.realpath(path)
            if canonical in ancestors:
                logger.debug("Skipping symlink cycle at %s -> %s", path, canonical)
                continue

            sub_paths, sub_recursions = self._walk_tree(path, plan, report, ancestors | {canonical})
            recursions += 1 + sub_recursions
            if plan.sort is SortStrategy.ALPHABETICAL:
                level.extend(sub_paths)
            else:
                nested.extend(sub_paths)

        if plan.sort is SortStrategy.ALPHABETICAL:
            return level, recursions
        return nested + level, recursions

    def _cached_paths(self, cache_key: str) -> list[str] | None:
        if self.store is None:
            return None
        cached = self.store.get_member(RSCANDIR_CACHE_KEY, cache_key)
        return list(cached) if isinstance(cached, list) else None

    def _remember(self, cache_key: str, paths: list[str], recursions: int) -> None:
        """Keep walks that crossed a size threshold in the shared store."""
        if self.store is None:
            return
        if recursions <= self.config.recursion_threshold and len(paths) <= self.config.num_files_threshold:
            return
        self.store.set_member(RSCANDIR_CACHE_KEY, cache_key, list(paths), CacheOptions(persist=False))


def _split_wildcard_root(root: str) -> tuple[str, PathFilter]:
    """Split ``base/**/*.js`` into the walk root and a filter anchored at it."""
    parts = root.replace("\\", "/").split("/")
    first_wildcard = next(index for index, part in enumerate(parts) if WILDCARD_CHARACTER in part)
    base = "/".join(parts[:first_wildcard])
    if not base and root.startswith("/"):
        base = "/"
    base = base or "."
    remainder = "/".join(parts[first_wildcard:])

    filter_type = FilterType.GLOB if GLOBSTAR in remainder else FilterType.WILDCARD
    anchored = normalize_path(base).rstrip("/") + "/" + remainder
    return base, PathFilter(anchored, type=filter_type)


def _cache_key(directory: str, plan: _WalkPlan, final_filters: list[PathFilter], config: WalkerConfig) -> str:
    """Key a walk by its root, adding a signature when options differ from the defaults."""
    options: list[str] = []
    if plan.sort != config.sort:
        options.append(f"sort={plan.sort}")
    if plan.ignore != frozenset(config.ignore):
        options.append("ignore=" + ",".join(sorted(plan.ignore)))
    if plan.include_directories:
        options.append("dirs=1")
    options.extend(f"filter={item.signature()}" for item in final_filters)
    if plan.prune is not None and plan.prune not in final_filters:
        options.append(f"prune={plan.prune.signature()}")
    if not options:
        return directory
    return f"{directory}?{'&'.join(options)}"
