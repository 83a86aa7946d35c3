"""Configuration loading and normalization for Crawlcache.

This package facade re-exports the public names so callers can use
``from crawlcache.config import ...``.
"""

from __future__ import annotations

from crawlcache.config.loader import load_config, parse_config
from crawlcache.config.model import CrawlCacheConfig

__all__ = ["CrawlCacheConfig", "load_config", "parse_config"]
