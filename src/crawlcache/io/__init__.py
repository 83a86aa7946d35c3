"""Shared file I/O helpers."""

from .json_io import json_size, load_json_file, remove_file, write_json_atomic
from .paths import has_unusable_character, is_within, normalize_path, resolve_real_path

__all__ = [
    "has_unusable_character",
    "is_within",
    "json_size",
    "load_json_file",
    "normalize_path",
    "remove_file",
    "resolve_real_path",
    "write_json_atomic",
]
