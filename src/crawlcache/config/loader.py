"""Config loading and normalization for Crawlcache."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from crawlcache.config.model import CrawlCacheConfig
from crawlcache.constants.config import (
    CACHE_KEYS,
    CACHE_SECTION,
    CONFIG_FILENAME,
    PACKAGES_KEYS,
    PACKAGES_SECTION,
    RSCANDIR_KEYS,
    RSCANDIR_SECTION,
)
from crawlcache.exceptions import ConfigError
from crawlcache.types.config import CacheConfig, PackagesConfig, WalkerConfig
from crawlcache.types.scanner import IgnoreStrategy, SortStrategy

_DEFAULT_CACHE = CacheConfig()
_DEFAULT_WALKER = WalkerConfig()
_DEFAULT_PACKAGES = PackagesConfig()


def load_config(root: Path, config_path: Path | None = None) -> CrawlCacheConfig:
    """Load and validate config from ``crawlcache.yaml`` or an explicit path."""
    root = root.resolve()
    path = config_path.resolve() if config_path else (root / CONFIG_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return CrawlCacheConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")

    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> CrawlCacheConfig:
    """Build a config object from an already-parsed mapping."""
    cache_raw = _section(raw, CACHE_SECTION, CACHE_KEYS)
    rscandir_raw = _section(raw, RSCANDIR_SECTION, RSCANDIR_KEYS)
    packages_raw = _section(raw, PACKAGES_SECTION, PACKAGES_KEYS)

    folder = cache_raw.get("folder", _DEFAULT_CACHE.folder)
    if not isinstance(folder, str) or not folder.strip():
        raise ConfigError("cache.folder must be a non-empty string")

    packages = PackagesConfig(
        dependency_folder=_ensure_name(
            packages_raw.get("dependency_folder", _DEFAULT_PACKAGES.dependency_folder),
            "packages.dependency_folder",
        ),
        manifest_filename=_ensure_name(
            packages_raw.get("manifest_filename", _DEFAULT_PACKAGES.manifest_filename),
            "packages.manifest_filename",
        ),
        packages_exclude_pattern=_ensure_regex(
            packages_raw.get("packages_exclude_pattern", _DEFAULT_PACKAGES.packages_exclude_pattern),
            "packages.packages_exclude_pattern",
        ),
    )

    return CrawlCacheConfig(
        cache=CacheConfig(
            folder=folder.strip(),
            in_memory=_ensure_bool(cache_raw.get("in_memory", _DEFAULT_CACHE.in_memory), "cache.in_memory"),
            persist=_ensure_bool(cache_raw.get("persist", _DEFAULT_CACHE.persist), "cache.persist"),
            memory_threshold=_ensure_positive_int(
                cache_raw.get("memory_threshold", _DEFAULT_CACHE.memory_threshold),
                "cache.memory_threshold",
            ),
        ),
        rscandir=WalkerConfig(
            recursion_threshold=_ensure_positive_int(
                rscandir_raw.get("recursion_threshold", _DEFAULT_WALKER.recursion_threshold),
                "rscandir.recursion_threshold",
            ),
            num_files_threshold=_ensure_positive_int(
                rscandir_raw.get("num_files_threshold", _DEFAULT_WALKER.num_files_threshold),
                "rscandir.num_files_threshold",
            ),
            sort=_ensure_sort(rscandir_raw.get("sort", _DEFAULT_WALKER.sort)),
            ignore=_ensure_ignore(rscandir_raw.get("ignore", list(_DEFAULT_WALKER.ignore))),
            dependency_folder=packages.dependency_folder,
        ),
        packages=packages,
    )


def _section(raw: dict[str, Any], name: str, allowed: frozenset[str]) -> dict[str, Any]:
    """Return a config section as a mapping, rejecting unknown keys."""
    value = raw.get(name, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping")
    unknown = sorted(str(key) for key in value if key not in allowed)
    if unknown:
        raise ConfigError(f"{name} has unknown key(s): {', '.join(unknown)}")
    return value


def _ensure_bool(value: Any, key_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{key_name} must be a boolean")
    return value


def _ensure_positive_int(value: Any, key_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{key_name} must be a positive integer")
    return value


def _ensure_name(value: Any, key_name: str) -> str:
    """Validate a single path segment such as a folder or file name."""
    if not isinstance(value, str) or not value.strip() or "/" in value or "\\" in value:
        raise ConfigError(f"{key_name} must be a single non-empty path segment")
    return value.strip()


def _ensure_regex(value: Any, key_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{key_name} must be a string")
    try:
        re.compile(value)
    except re.error as exc:
        raise ConfigError(f"{key_name} is not a valid regular expression: {exc}") from exc
    return value


def _ensure_sort(value: Any) -> SortStrategy:
    try:
        return SortStrategy(str(value).lower())
    except ValueError as exc:
        valid = sorted(strategy.value for strategy in SortStrategy)
        raise ConfigError(f"rscandir.sort must be one of {valid}, got {value!r}") from exc


def _ensure_ignore(value: Any) -> tuple[IgnoreStrategy, ...]:
    """Coerce the ignore list to strategies, keeping order and dropping repeats."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigError("rscandir.ignore must be a list of strings")

    strategies: list[IgnoreStrategy] = []
    for item in value:
        try:
            strategy = IgnoreStrategy(item.lower())
        except ValueError as exc:
            valid = sorted(strategy.value for strategy in IgnoreStrategy)
            raise ConfigError(f"rscandir.ignore entries must be one of {valid}, got {item!r}") from exc
        if strategy not in strategies:
            strategies.append(strategy)
    return tuple(strategies)
