"""Root exception type."""

from __future__ import annotations


class CrawlCacheError(Exception):
    """Base class for errors raised by Crawlcache."""
