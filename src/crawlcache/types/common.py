"""Cross-module type aliases."""

from __future__ import annotations

from collections.abc import Callable

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list["JsonValue"] | dict[str, "JsonValue"]
type JsonObject = dict[str, JsonValue]

type PathResolver = Callable[[str], str]
