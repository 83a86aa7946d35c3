"""Strategy enumerations for directory walking and path filtering."""

from __future__ import annotations

from enum import StrEnum


class SortStrategy(StrEnum):
    """Ordering of a flattened walk."""

    DEPTH_FIRST = "depth_first"
    ALPHABETICAL = "alphabetical"


class IgnoreStrategy(StrEnum):
    """Directories a walk never emits nor descends into."""

    NONE = "none"
    SKIP_DEPENDENCY_FOLDER = "skip_dependency_folder"
    SKIP_DOT_FOLDERS = "skip_dot_folders"
    GITIGNORE = "gitignore"


class FilterType(StrEnum):
    """Pattern dialects understood by ``PathFilter``."""

    WILDCARD = "wildcard"
    GLOB = "glob"
    REGEX = "regex"
