"""Wire one cache store to the walker and scanners for a project root."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from crawlcache.cache import CacheStore, make_rehome_hook
from crawlcache.config import CrawlCacheConfig, load_config
from crawlcache.constants.cache import LOCAL_FILES_CACHE_KEY, PACKAGES_CACHE_KEY
from crawlcache.constants.shutdown import STORE_SHUTDOWN_LABEL
from crawlcache.io import normalize_path
from crawlcache.lifecycle import ShutdownCoordinator
from crawlcache.scanner import DirectoryWalker, FileScanner, PackageTopologyScanner

logger = logging.getLogger(__name__)


@dataclass
class CrawlSession:
    """A cache store shared by every scanner of one project root."""

    root: str
    config: CrawlCacheConfig
    store: CacheStore
    walker: DirectoryWalker
    packages: PackageTopologyScanner
    files: FileScanner
    closed: bool = field(default=False, init=False)

    @classmethod
    def open(
        cls,
        root: str | os.PathLike[str],
        config: CrawlCacheConfig | None = None,
        *,
        shutdown: ShutdownCoordinator | None = None,
        read_cache: bool = True,
    ) -> CrawlSession:
        """Create the store, warm it from disk and hook its shutdown."""
        directory = normalize_path(root)
        config = config or load_config(Path(directory))

        store = CacheStore(config.cache, directory)
        if read_cache:
            store.read()
        store.on_save(
            make_rehome_hook(
                store,
                PACKAGES_CACHE_KEY,
                dependency_folder=config.dependency_folder,
                rewrite_members=True,
            )
        )
        store.on_save(make_rehome_hook(store, LOCAL_FILES_CACHE_KEY, dependency_folder=config.dependency_folder))

        walker = DirectoryWalker(config.rscandir, store=store)
        packages = PackageTopologyScanner(config.packages, walker, store=store)
        files = FileScanner(config.packages, walker, packages, store=store)
        session = cls(
            root=directory,
            config=config,
            store=store,
            walker=walker,
            packages=packages,
            files=files,
        )
        if shutdown is not None:
            shutdown.register(session.close, STORE_SHUTDOWN_LABEL)
        logger.debug("Opened crawl session at %s with %d cached key(s)", directory, len(store))
        return session

    def close(self) -> None:
        """Save the store and delete its temporary files; repeated calls do nothing."""
        if self.closed:
            return
        self.closed = True
        self.store.shutdown()

    def __enter__(self) -> CrawlSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
