"""Path normalization and symlink resolution helpers."""

from __future__ import annotations

import os
from pathlib import Path

from crawlcache.constants.scanner import DRIVE_PREFIX_LENGTH, UNUSABLE_PATH_CHARACTERS


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Return an absolute, ``/``-separated path without resolving symlinks."""
    return Path(os.path.abspath(os.fspath(path))).as_posix()


def resolve_real_path(path: str | os.PathLike[str]) -> str:
    """Return the canonical path of *path*, raising ``OSError`` when it cannot be resolved."""
    return Path(os.path.realpath(os.fspath(path), strict=True)).as_posix()


def has_unusable_character(path: str, *, windows: bool | None = None) -> bool:
    """Return True when *path* holds characters illegal on common filesystems.

    Colons are only rejected for Windows paths, where one may still appear
    in the drive prefix. *windows* defaults to the running platform.
    """
    if UNUSABLE_PATH_CHARACTERS.search(path):
        return True
    if windows is None:
        windows = os.name == "nt"
    return windows and ":" in path[DRIVE_PREFIX_LENGTH:]


def is_within(path: str, folder_name: str) -> bool:
    """Return True when any segment of *path* equals *folder_name*."""
    return folder_name in path.split("/")
