"""Wildcard, glob and regular-expression path filters."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Mapping
from re import Pattern
from typing import Any

from wcmatch import glob as wcglob

from crawlcache.constants.scanner import GLOBSTAR, SUFFIX_MATCH_PREFIX, WILDCARD_CHARACTER
from crawlcache.types.scanner import FilterType

type FilterSpec = str | Pattern[str] | Mapping[str, Any] | PathFilter

# Glob semantics: ``**`` spans directories, a leading ``!`` is literal and
# dot-prefixed names are matched like any other.
_GLOB_FLAGS = wcglob.GLOBSTAR | wcglob.DOTGLOB


class PathFilter:
    """Match paths against one pattern, in inclusion or exclusion mode.

    When ``type`` is omitted it is inferred from the pattern: a compiled
    regular expression is a regex, a pattern holding ``**`` is a glob, one
    holding ``*`` is a wildcard, and anything else matches as a path suffix
    (``name`` behaves like ``*/name``). An empty pattern matches everything.
    """

    def __init__(
        self,
        pattern: str | Pattern[str] = "",
        *,
        type: FilterType | str | None = None,
        exclude: bool = False,
    ) -> None:
        self.exclude = exclude
        if type is None and isinstance(pattern, str) and not pattern:
            self.type, self.pattern = FilterType.WILDCARD, pattern
        elif type is None:
            self.type, self.pattern = _infer(pattern)
        else:
            self.type = FilterType(type)
            self.pattern = pattern

        self._matcher = self._compile()

    @classmethod
    def coerce(cls, spec: FilterSpec | None) -> PathFilter | None:
        """Build a filter from a pattern, a ``{pattern, type, exclude}`` mapping or a filter."""
        if spec is None or isinstance(spec, PathFilter):
            return spec
        if isinstance(spec, Mapping):
            return cls(spec.get("pattern", ""), type=spec.get("type"), exclude=bool(spec.get("exclude", False)))
        return cls(spec)

    def match(self, path: str | os.PathLike[str] | None) -> bool:
        """Return True when *path* matches the pattern, ignoring ``exclude``."""
        if not path:
            return False
        return self._matcher(os.fspath(path))

    def accepts(self, path: str) -> bool:
        """Return True when *path* survives this filter."""
        return self.match(path) != self.exclude

    def filter_list(self, paths: Iterable[str]) -> list[str]:
        """Keep matching paths, or non-matching ones in exclusion mode."""
        return [path for path in paths if self.accepts(path)]

    def signature(self) -> str:
        """Return a stable text form used to key cached walks."""
        pattern = self.pattern.pattern if isinstance(self.pattern, Pattern) else self.pattern
        mode = "exclude" if self.exclude else "include"
        return f"{self.type}:{mode}:{pattern}"

    def __repr__(self) -> str:
        return f"PathFilter({self.pattern!r}, type={self.type.value!r}, exclude={self.exclude!r})"

    def _compile(self) -> Any:
        if isinstance(self.pattern, str) and not self.pattern:
            return lambda path: True

        if self.type is FilterType.REGEX:
            regex = self.pattern if isinstance(self.pattern, Pattern) else re.compile(self.pattern)
            return lambda path: regex.search(path) is not None

        if isinstance(self.pattern, Pattern):
            raise TypeError(f"A compiled pattern requires the regex filter type, got {self.type.value!r}")

        if self.type is FilterType.GLOB:
            pattern = self.pattern
            return lambda path: wcglob.globmatch(path, pattern, flags=_GLOB_FLAGS)

        wildcard = _wildcard_regex(self.pattern)
        return lambda path: wildcard.fullmatch(path) is not None


def filter_paths(paths: Iterable[str], spec: FilterSpec) -> list[str]:
    """Filter *paths* with a filter built from *spec*."""
    path_filter = PathFilter.coerce(spec)
    if path_filter is None:
        raise TypeError("filter_paths requires a filter specification, got None")
    return path_filter.filter_list(paths)


def _infer(pattern: str | Pattern[str]) -> tuple[FilterType, str | Pattern[str]]:
    if isinstance(pattern, Pattern):
        return FilterType.REGEX, pattern
    if GLOBSTAR in pattern:
        return FilterType.GLOB, pattern
    if WILDCARD_CHARACTER in pattern:
        return FilterType.WILDCARD, pattern
    return FilterType.WILDCARD, SUFFIX_MATCH_PREFIX + pattern


def _wildcard_regex(pattern: str) -> Pattern[str]:
    """Translate a wildcard where ``*`` spans any characters, ``/`` included."""
    body = ".*".join(re.escape(part) for part in pattern.split(WILDCARD_CHARACTER))
    return re.compile(body, re.DOTALL)
