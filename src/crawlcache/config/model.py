"""Config data model for Crawlcache."""

from __future__ import annotations

from dataclasses import dataclass

from crawlcache.types.config import CacheConfig, PackagesConfig, WalkerConfig


@dataclass(frozen=True)
class CrawlCacheConfig:
    """Resolved crawler and cache config."""

    cache: CacheConfig = CacheConfig()
    rscandir: WalkerConfig = WalkerConfig()
    packages: PackagesConfig = PackagesConfig()

    @property
    def dependency_folder(self) -> str:
        """Name of the installed-packages folder shared by walker and scanners."""
        return self.packages.dependency_folder
