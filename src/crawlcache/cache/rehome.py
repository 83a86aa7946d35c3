"""Re-key dependency-folder paths onto the canonical package root that owns them.

A package reached through a symlink (a linked workspace, a shared store) is
listed under the path it was discovered at. Before such a listing is saved,
each key is split at its last dependency-folder segment, the leading part is
resolved to its real location, and the entry is written into the cache folder
of that canonical root. Roots that resolve to the same place merge into one
record, the entry discovered last winning.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from crawlcache.cache.store import CacheStore, SaveCallback
from crawlcache.constants.cache import CACHE_FILE_SUFFIX
from crawlcache.exceptions import IssueCode, IssueReport
from crawlcache.io import json_size, resolve_real_path
from crawlcache.types.common import JsonValue, PathResolver

logger = logging.getLogger(__name__)


def split_dependency_path(path: str, dependency_folder: str) -> tuple[str, str] | None:
    """Split *path* before its last *dependency_folder* segment.

    ``/app/node_modules/a/node_modules/b`` gives
    ``("/app/node_modules/a", "node_modules/b")``. Returns None when no
    segment names the dependency folder.
    """
    parts = path.split("/")
    for index in range(len(parts) - 1, 0, -1):
        if parts[index] == dependency_folder:
            return "/".join(parts[:index]) or "/", "/".join(parts[index:])
    return None


def rehome(
    value: Mapping[str, JsonValue],
    resolve: PathResolver,
    *,
    home: str,
    dependency_folder: str,
    rewrite_members: bool = False,
    issues: IssueReport | None = None,
) -> dict[str, dict[str, JsonValue]]:
    """Group the entries of *value* by the canonical root that owns each key.

    Keys outside any dependency folder stay under *home* unchanged. With
    *rewrite_members*, string items of list values are canonicalized the same
    way as keys. A prefix that cannot be resolved keeps its given path.
    """
    resolved: dict[str, str] = {}

    def canonical_root(prefix: str) -> str:
        if prefix not in resolved:
            try:
                resolved[prefix] = resolve(prefix)
            except OSError as exc:
                if issues is not None:
                    issues.record(IssueCode.SYMLINK_RESOLUTION, prefix, f"keeping unresolved path ({exc})")
                resolved[prefix] = prefix
        return resolved[prefix]

    def canonicalize(path: str) -> tuple[str | None, str]:
        split = split_dependency_path(path, dependency_folder)
        if split is None:
            return None, path
        prefix, leaf = split
        root = canonical_root(prefix)
        return root, f"{root.rstrip('/')}/{leaf}"

    groups: dict[str, dict[str, JsonValue]] = {}
    for key, member in value.items():
        root, canonical_key = canonicalize(key)
        if rewrite_members and isinstance(member, list):
            member = [canonicalize(item)[1] if isinstance(item, str) else item for item in member]
        groups.setdefault(home if root is None else root, {})[canonical_key] = member
    return groups


def make_rehome_hook(
    store: CacheStore,
    key: str,
    *,
    dependency_folder: str,
    rewrite_members: bool = False,
    resolve: PathResolver = resolve_real_path,
) -> SaveCallback:
    """Build an ``on_save`` callback that writes *key* into each canonical root's cache folder.

    The group belonging to the store's own root is left to the store's
    default write.
    """
    home_paths = {store.root, Path(os.path.realpath(store.root)).as_posix()}

    def hook(saved_key: str, value: JsonValue) -> bool:
        if saved_key != key or not isinstance(value, dict):
            return False
        entry = store.describe(key)
        if entry is None:
            return False

        groups = rehome(
            value,
            resolve,
            home=store.root,
            dependency_folder=dependency_folder,
            rewrite_members=rewrite_members,
            issues=store.report,
        )
        for root, members in groups.items():
            if root in home_paths:
                continue
            record = dataclasses.replace(entry, value=members, size_bytes=json_size(members)).to_record(in_memory=True)
            path = Path(root) / store.config.folder / f"{entry.prefix}{key}{CACHE_FILE_SUFFIX}"
            logger.debug("Re-homing %d %s entries to %s", len(members), key, path)
            store.write_record(path, record)
        return False

    return hook
