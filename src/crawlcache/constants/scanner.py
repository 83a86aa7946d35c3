"""Constants for directory walking and package discovery."""

from __future__ import annotations

import re
from re import Pattern

DEFAULT_RECURSION_THRESHOLD: int = 50
DEFAULT_NUM_FILES_THRESHOLD: int = 1000

DEPENDENCY_FOLDER: str = "node_modules"
MANIFEST_FILENAME: str = "package.json"
PACKAGES_EXCLUDE_PATTERN: str = r"(^|/)(node_modules|packages)(/|$)"
SCOPED_PACKAGE_PREFIX: str = "@"

# Characters rejected on at least one mainstream filesystem.
UNUSABLE_PATH_CHARACTERS: Pattern[str] = re.compile(r'[?"<>|]')
# On Windows a colon is only legal within a drive prefix such as ``C:/`` or ``/C:/``.
DRIVE_PREFIX_LENGTH: int = 3

WILDCARD_CHARACTER: str = "*"
GLOBSTAR: str = "**"
SUFFIX_MATCH_PREFIX: str = "*/"
