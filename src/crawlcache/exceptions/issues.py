"""Recoverable scan and cache issues collected into batch reports.

Nothing in the crawler or the cache store raises for a missing directory, an
unreadable cache record or a failed write. Each such condition becomes a
``ScanIssue`` in an ``IssueReport`` so callers can inspect what was skipped.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import StrEnum

logger = logging.getLogger(__name__)


class IssueCode(StrEnum):
    """Stable codes for recoverable conditions."""

    NOT_FOUND = "NOT_FOUND"
    MALFORMED_CACHE = "MALFORMED_CACHE"
    UNUSABLE_PATH = "UNUSABLE_PATH"
    WRITE_FAILURE = "WRITE_FAILURE"
    SYMLINK_RESOLUTION = "SYMLINK_RESOLUTION"
    UNREADABLE = "UNREADABLE"


_WARNING_CODES: frozenset[IssueCode] = frozenset(
    {IssueCode.NOT_FOUND, IssueCode.UNUSABLE_PATH, IssueCode.WRITE_FAILURE}
)


@dataclass(frozen=True)
class ScanIssue:
    """A single recovered condition with the path it concerns."""

    code: IssueCode
    path: str
    message: str

    def format(self) -> str:
        """Format as a human-readable single-line message."""
        return f"[{self.code}] {self.path}: {self.message}"


@dataclass
class IssueReport:
    """Ordered collection of issues recorded during one operation."""

    issues: list[ScanIssue] = field(default_factory=list)

    def record(self, code: IssueCode, path: str, message: str) -> ScanIssue:
        """Append and log an issue, returning it."""
        issue = ScanIssue(code=code, path=path, message=message)
        self.issues.append(issue)
        level = logging.WARNING if code in _WARNING_CODES else logging.DEBUG
        logger.log(level, issue.format())
        return issue

    def extend(self, other: IssueReport | list[ScanIssue]) -> None:
        """Merge issues from another report without logging them again."""
        items = other.issues if isinstance(other, IssueReport) else other
        self.issues.extend(items)

    def count(self, code: IssueCode | None = None) -> int:
        """Return the number of issues, optionally restricted to one code."""
        if code is None:
            return len(self.issues)
        return sum(1 for issue in self.issues if issue.code == code)

    def counts(self) -> dict[str, int]:
        """Return issue counts keyed by code, sorted for stable output."""
        counter = Counter(str(issue.code) for issue in self.issues)
        return dict(sorted(counter.items()))

    def clear(self) -> None:
        self.issues.clear()

    def __bool__(self) -> bool:
        return bool(self.issues)

    def __len__(self) -> int:
        return len(self.issues)
