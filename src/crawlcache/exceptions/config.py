"""Configuration-related exceptions."""

from __future__ import annotations

from crawlcache.exceptions.base import CrawlCacheError


class ConfigError(CrawlCacheError, ValueError):
    """Raised when crawler or cache configuration is invalid."""
