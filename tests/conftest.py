"""Shared pytest fixtures that build small directory trees."""

from __future__ import annotations

import itertools
import json
from collections.abc import Callable
from pathlib import Path

import pytest


def _write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _manifest(package_dir: Path, name: str) -> None:
    _write(package_dir / "package.json", json.dumps({"name": name}))


@pytest.fixture
def simple_tree(tmp_path: Path) -> Path:
    """Return ``project/`` holding ``a.txt`` and ``sub/b.txt``."""
    root = tmp_path / "project"
    _write(root / "a.txt", "a")
    _write(root / "sub" / "b.txt", "b")
    return root


@pytest.fixture
def package_tree(tmp_path: Path) -> Path:
    """Return an ``app/`` workspace with local, installed, scoped and nested packages."""
    root = tmp_path / "app"
    _manifest(root, "app")
    _write(root / "scripts" / "local.js")

    _manifest(root / "lib" / "widgets", "widgets")
    _write(root / "lib" / "widgets" / "scripts" / "build.js")
    _manifest(root / "packages" / "ignored", "ignored")

    modules = root / "node_modules"
    _manifest(modules / "alpha", "alpha")
    _write(modules / "alpha" / "scripts" / "run.js")
    _manifest(modules / "alpha" / "node_modules" / "gamma", "gamma")
    _manifest(modules / "@scope" / "beta", "@scope/beta")
    _write(modules / ".bin" / "tool")
    return root


@pytest.fixture
def clock() -> Callable[[], float]:
    """Return a clock that advances by one second per call."""
    ticks = itertools.count(1)
    return lambda: float(next(ticks))
