"""Tests for re-keying dependency listings onto canonical package roots."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from crawlcache.cache.rehome import make_rehome_hook, rehome, split_dependency_path
from crawlcache.cache.store import CacheStore
from crawlcache.exceptions import IssueCode, IssueReport
from crawlcache.types.config import CacheConfig

LINKS = {
    "/app": "/real/app",
    "/one": "/shared",
    "/two": "/shared",
    "/app/node_modules/linked": "/store/linked",
}


def _resolve(path: str) -> str:
    return LINKS.get(path, path)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/app/node_modules", ("/app", "node_modules")),
        ("/app/node_modules/a", ("/app", "node_modules/a")),
        ("/app/node_modules/a/node_modules/b", ("/app/node_modules/a", "node_modules/b")),
        ("/app/src/index.js", None),
    ],
    ids=["folder", "package", "nested", "outside"],
)
def test_split_dependency_path(path: str, expected: tuple[str, str] | None) -> None:
    assert split_dependency_path(path, "node_modules") == expected


def test_rehome_groups_by_canonical_root_and_rewrites_members() -> None:
    value = {
        "/app/node_modules": ["/app/node_modules/a", "/app/node_modules/linked"],
        "/app/node_modules/linked/node_modules": ["/app/node_modules/linked/node_modules/dep"],
    }

    groups = rehome(value, _resolve, home="/app", dependency_folder="node_modules", rewrite_members=True)

    assert groups == {
        "/real/app": {"/real/app/node_modules": ["/real/app/node_modules/a", "/real/app/node_modules/linked"]},
        "/store/linked": {"/store/linked/node_modules": ["/store/linked/node_modules/dep"]},
    }


def test_rehome_keeps_members_unless_asked() -> None:
    value = {"/app/node_modules/a/src": ["/app/node_modules/a/src/x.js"]}

    groups = rehome(value, _resolve, home="/app", dependency_folder="node_modules")

    assert groups == {"/real/app": {"/real/app/node_modules/a/src": ["/app/node_modules/a/src/x.js"]}}


def test_rehome_last_writer_wins_for_merged_roots() -> None:
    value = {"/one/node_modules": ["first"], "/two/node_modules": ["second"]}

    groups = rehome(value, _resolve, home="/app", dependency_folder="node_modules")

    assert groups == {"/shared": {"/shared/node_modules": ["second"]}}


def test_rehome_groups_plain_keys_under_home() -> None:
    groups = rehome({"/app/src": ["x"]}, _resolve, home="/app", dependency_folder="node_modules")

    assert groups == {"/app": {"/app/src": ["x"]}}


def test_rehome_falls_back_to_given_path_on_resolution_failure() -> None:
    def failing(path: str) -> str:
        raise FileNotFoundError(path)

    issues = IssueReport()
    groups = rehome(
        {"/gone/node_modules": []},
        failing,
        home="/app",
        dependency_folder="node_modules",
        issues=issues,
    )

    assert groups == {"/gone": {"/gone/node_modules": []}}
    assert issues.count(IssueCode.SYMLINK_RESOLUTION) == 1


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_hook_writes_into_the_canonical_root(tmp_path: Path) -> None:
    app = tmp_path / "app"
    shared = tmp_path / "shared" / "pkg"
    shared.mkdir(parents=True)
    (app / "node_modules").mkdir(parents=True)
    (app / "node_modules" / "pkg").symlink_to(shared, target_is_directory=True)
    real_shared = Path(os.path.realpath(shared)).as_posix()
    app_text = app.as_posix()

    store = CacheStore(CacheConfig(), app)
    store.on_save(make_rehome_hook(store, "packages", dependency_folder="node_modules", rewrite_members=True))
    store.set(
        "packages",
        {
            f"{app_text}/node_modules": [f"{app_text}/node_modules/pkg"],
            f"{app_text}/node_modules/pkg/node_modules": [f"{app_text}/node_modules/pkg/node_modules/dep"],
        },
    )
    store.save()

    rehomed = json.loads((shared / ".cache" / "packages.json").read_text(encoding="utf-8"))
    assert rehomed["key"] == "packages"
    assert rehomed["value"] == {f"{real_shared}/node_modules": [f"{real_shared}/node_modules/dep"]}
    assert store.file_for("packages").is_file()
    assert not store.report
