"""Tests for path filter type inference and matching."""

from __future__ import annotations

import re

import pytest

from crawlcache.scanner.filters import PathFilter, filter_paths
from crawlcache.types.scanner import FilterType


@pytest.mark.parametrize(
    ("pattern", "expected_type"),
    [
        (re.compile(r"\.js$"), FilterType.REGEX),
        ("src/**/*.js", FilterType.GLOB),
        ("*.js", FilterType.WILDCARD),
        ("b.txt", FilterType.WILDCARD),
        ("", FilterType.WILDCARD),
    ],
    ids=["compiled-regex", "globstar", "wildcard", "plain-name", "empty"],
)
def test_filter_type_is_inferred(pattern: object, expected_type: FilterType) -> None:
    assert PathFilter(pattern).type is expected_type


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("b.txt", "/root/sub/b.txt", True),
        ("b.txt", "/root/sub/ab.txt", False),
        ("*.js", "/root/a/b/c.js", True),
        ("*.js", "/root/a/b/c.json", False),
        ("/root/*/c.js", "/root/a/b/c.js", True),
        ("src/**/*.js", "src/a/b/c.js", True),
        ("src/**/*.js", "lib/c.js", False),
        (re.compile(r"node_modules/"), "/app/node_modules/x/index.js", True),
        ("", "/anything/at/all", True),
    ],
    ids=[
        "suffix-match",
        "suffix-requires-separator",
        "wildcard-spans-separators",
        "wildcard-anchored-at-end",
        "wildcard-in-middle",
        "glob-globstar",
        "glob-miss",
        "regex-search",
        "empty-matches-all",
    ],
)
def test_match(pattern: object, path: str, expected: bool) -> None:
    assert PathFilter(pattern).match(path) is expected


def test_string_pattern_with_explicit_regex_type() -> None:
    path_filter = PathFilter(r"\d+\.log$", type="regex")

    assert path_filter.type is FilterType.REGEX
    assert path_filter.match("/var/run-12.log")
    assert not path_filter.match("/var/run.log")


@pytest.mark.parametrize("path", ["", None], ids=["empty", "none"])
def test_falsy_paths_never_match(path: str | None) -> None:
    assert not PathFilter("").match(path)


def test_filter_list_keeps_order_in_both_modes() -> None:
    paths = ["/r/a.txt", "/r/b.txt", "/r/c.md", "/r/d.txt"]

    assert PathFilter("*.txt").filter_list(paths) == ["/r/a.txt", "/r/b.txt", "/r/d.txt"]
    assert PathFilter("*.txt", exclude=True).filter_list(paths) == ["/r/c.md"]


def test_coerce_accepts_mappings_and_filters() -> None:
    built = PathFilter.coerce({"pattern": "a.txt", "exclude": True})

    assert isinstance(built, PathFilter)
    assert built.exclude
    assert PathFilter.coerce(built) is built
    assert PathFilter.coerce(None) is None


def test_compiled_pattern_rejects_non_regex_type() -> None:
    with pytest.raises(TypeError):
        PathFilter(re.compile("x"), type=FilterType.GLOB)


def test_filter_paths_helper() -> None:
    assert filter_paths(["/r/a.txt", "/r/b.txt"], {"pattern": "a.txt", "exclude": True}) == ["/r/b.txt"]


def test_signature_distinguishes_mode() -> None:
    assert PathFilter("*.js").signature() != PathFilter("*.js", exclude=True).signature()


def test_exclusion_on_relative_names() -> None:
    path_filter = PathFilter.coerce({"pattern": "*.log", "exclude": True})

    assert path_filter.filter_list(["a.log", "b.txt"]) == ["b.txt"]


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("**/sub", "r/sub", True),
        ("**/sub", "r/sub/b.txt", False),
        ("!**/*.js", "r/a.js", False),
        ("!**/*.js", "!r/a.js", True),
        ("**/*.cfg", "r/.hidden.cfg", True),
    ],
    ids=["directory-itself", "not-files-below-directory", "bang-is-literal", "bang-matches-itself", "dotfiles"],
)
def test_glob_matches_whole_paths_only(pattern: str, path: str, expected: bool) -> None:
    assert PathFilter(pattern, type="glob").match(path) is expected


def test_filter_paths_requires_a_spec() -> None:
    with pytest.raises(TypeError):
        filter_paths(["/r/a.txt"], None)
