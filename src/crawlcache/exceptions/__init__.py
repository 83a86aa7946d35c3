"""Shared exception hierarchy and recoverable issue reports for Crawlcache."""

from __future__ import annotations

from .base import CrawlCacheError
from .config import ConfigError
from .issues import IssueCode, IssueReport, ScanIssue

__all__ = ["ConfigError", "CrawlCacheError", "IssueCode", "IssueReport", "ScanIssue"]
