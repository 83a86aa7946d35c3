"""Tests for recursive directory walking."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from crawlcache.cache.store import CacheStore
from crawlcache.constants.cache import RSCANDIR_CACHE_KEY
from crawlcache.exceptions import IssueCode
from crawlcache.scanner.walker import DirectoryWalker
from crawlcache.types.config import CacheConfig, WalkerConfig
from crawlcache.types.scanner import IgnoreStrategy, SortStrategy


def _relative(paths: list[str], root: Path) -> list[str]:
    prefix = root.as_posix() + "/"
    return [path.removeprefix(prefix) for path in paths]


def test_depth_first_lists_nested_results_before_own_files(simple_tree: Path) -> None:
    result = DirectoryWalker().walk(simple_tree)

    assert _relative(result.paths, simple_tree) == ["sub/b.txt", "a.txt"]
    assert result.recursions == 1
    assert not result.report


def test_alphabetical_lists_in_pre_order(simple_tree: Path) -> None:
    result = DirectoryWalker().walk(simple_tree, sort=SortStrategy.ALPHABETICAL)

    assert _relative(result.paths, simple_tree) == ["a.txt", "sub/b.txt"]


def test_include_directories_emits_directory_before_contents(simple_tree: Path) -> None:
    result = DirectoryWalker().walk(simple_tree, sort=SortStrategy.ALPHABETICAL, include_directories=True)

    assert _relative(result.paths, simple_tree) == ["a.txt", "sub", "sub/b.txt"]


def test_walk_directories_returns_only_directories(simple_tree: Path) -> None:
    (simple_tree / "sub" / "deeper").mkdir()

    directories = DirectoryWalker().walk_directories(simple_tree)

    assert sorted(_relative(directories, simple_tree)) == ["sub", "sub/deeper"]


def test_recursions_count_every_descent(simple_tree: Path) -> None:
    (simple_tree / "sub" / "deeper").mkdir()
    (simple_tree / "other").mkdir()

    assert DirectoryWalker().walk(simple_tree).recursions == 3


def test_dependency_folder_is_never_emitted_or_descended(simple_tree: Path) -> None:
    modules = simple_tree / "node_modules" / "pkg"
    modules.mkdir(parents=True)
    (modules / "index.js").write_text("", encoding="utf-8")

    result = DirectoryWalker().walk(simple_tree, include_directories=True)

    assert not any("node_modules" in path for path in result.paths)


def test_dot_folders_are_skipped_unless_ignore_is_overridden(simple_tree: Path) -> None:
    hidden = simple_tree / ".git"
    hidden.mkdir()
    (hidden / "HEAD").write_text("ref", encoding="utf-8")

    default = DirectoryWalker().walk(simple_tree)
    everything = DirectoryWalker().walk(simple_tree, ignore=[IgnoreStrategy.NONE])

    assert ".git/HEAD" not in _relative(default.paths, simple_tree)
    assert ".git/HEAD" in _relative(everything.paths, simple_tree)


def test_configured_dependency_folder_name(simple_tree: Path) -> None:
    vendor = simple_tree / "vendor"
    vendor.mkdir()
    (vendor / "lib.py").write_text("", encoding="utf-8")

    result = DirectoryWalker(WalkerConfig(dependency_folder="vendor")).walk(simple_tree)

    assert "vendor/lib.py" not in _relative(result.paths, simple_tree)


def test_exclusion_filter_drops_matches(tmp_path: Path) -> None:
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")

    result = DirectoryWalker().walk(tmp_path, {"pattern": "a.txt", "exclude": True})

    assert _relative(result.paths, tmp_path) == ["b.txt"]


def test_exclusion_filter_prunes_matching_directories(simple_tree: Path) -> None:
    result = DirectoryWalker().walk(simple_tree, {"pattern": "*/sub", "exclude": True})

    assert _relative(result.paths, simple_tree) == ["a.txt"]
    assert result.recursions == 0


def test_explicit_prune_stops_descent_without_filtering_files(simple_tree: Path) -> None:
    result = DirectoryWalker().walk(simple_tree, prune={"pattern": "sub", "exclude": True})

    assert _relative(result.paths, simple_tree) == ["a.txt"]


def test_wildcard_root_is_split_into_root_and_filter(simple_tree: Path) -> None:
    (simple_tree / "notes.md").write_text("", encoding="utf-8")

    result = DirectoryWalker().walk(f"{simple_tree.as_posix()}/*.txt")

    assert _relative(result.paths, simple_tree) == ["sub/b.txt", "a.txt"]


def test_missing_root_yields_empty_result(tmp_path: Path) -> None:
    result = DirectoryWalker().walk(tmp_path / "missing")

    assert result.paths == []
    assert result.report.count(IssueCode.NOT_FOUND) == 1


def test_unusable_root_is_reported(tmp_path: Path) -> None:
    result = DirectoryWalker().walk(f"{tmp_path.as_posix()}/bad|name")

    assert result.paths == []
    assert result.report.count(IssueCode.UNUSABLE_PATH) == 1


def test_unusable_directory_is_skipped(simple_tree: Path) -> None:
    odd = simple_tree / "what?"
    odd.mkdir()
    (odd / "c.txt").write_text("c", encoding="utf-8")

    result = DirectoryWalker().walk(simple_tree)

    assert _relative(result.paths, simple_tree) == ["sub/b.txt", "a.txt"]
    assert result.report.count(IssueCode.UNUSABLE_PATH) == 1


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_cycle_terminates(simple_tree: Path) -> None:
    (simple_tree / "sub" / "loop").symlink_to(simple_tree, target_is_directory=True)

    result = DirectoryWalker().walk(simple_tree)

    assert _relative(result.paths, simple_tree) == ["sub/b.txt", "a.txt"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlinked_directory_is_followed(simple_tree: Path, tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "c.txt").write_text("c", encoding="utf-8")
    (simple_tree / "linked").symlink_to(outside, target_is_directory=True)

    result = DirectoryWalker().walk(simple_tree, sort=SortStrategy.ALPHABETICAL)

    assert _relative(result.paths, simple_tree) == ["a.txt", "linked/c.txt", "sub/b.txt"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_broken_symlink_is_skipped(simple_tree: Path) -> None:
    (simple_tree / "dangling").symlink_to(simple_tree / "nowhere")

    result = DirectoryWalker().walk(simple_tree)

    assert _relative(result.paths, simple_tree) == ["sub/b.txt", "a.txt"]
    assert result.report.count(IssueCode.UNREADABLE) == 1


def test_large_walks_are_served_from_the_store(simple_tree: Path, tmp_path: Path) -> None:
    store = CacheStore(CacheConfig(), tmp_path / "cache-root")
    walker = DirectoryWalker(WalkerConfig(recursion_threshold=5, num_files_threshold=1), store=store)

    first = walker.walk(simple_tree)
    (simple_tree / "late.txt").write_text("", encoding="utf-8")
    second = walker.walk(simple_tree)

    assert not first.from_cache
    assert second.from_cache
    assert second.paths == first.paths
    assert store.describe(RSCANDIR_CACHE_KEY).persist is False


def test_small_walks_are_not_cached(simple_tree: Path, tmp_path: Path) -> None:
    store = CacheStore(CacheConfig(), tmp_path / "cache-root")
    walker = DirectoryWalker(store=store)

    walker.walk(simple_tree)

    assert RSCANDIR_CACHE_KEY not in store


def test_cached_walks_are_keyed_by_options(simple_tree: Path, tmp_path: Path) -> None:
    store = CacheStore(CacheConfig(), tmp_path / "cache-root")
    walker = DirectoryWalker(WalkerConfig(recursion_threshold=5, num_files_threshold=1), store=store)

    depth_first = walker.walk(simple_tree)
    alphabetical = walker.walk(simple_tree, sort=SortStrategy.ALPHABETICAL)

    assert not alphabetical.from_cache
    assert alphabetical.paths == list(reversed(depth_first.paths))
