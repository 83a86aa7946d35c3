"""Cache record serialization and atomic file replacement."""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import suppress
from pathlib import Path

from crawlcache.constants.cache import CACHE_TEMP_PREFIX, CACHE_TEMP_SUFFIX
from crawlcache.types.common import JsonValue

COMPACT_SEPARATORS: tuple[str, str] = (",", ":")


def load_json_file(path: Path) -> object:
    """Load and parse JSON from disk."""
    return json.loads(path.read_text(encoding="utf-8"))


def json_size(value: JsonValue) -> int:
    """Return the UTF-8 byte length of the compact JSON form of *value*."""
    return len(_encode(value, compact=True))


def write_json_atomic(
    *,
    path: Path,
    payload: object,
    temp_prefix: str = CACHE_TEMP_PREFIX,
    temp_suffix: str = CACHE_TEMP_SUFFIX,
) -> None:
    """Replace *path* with the JSON form of *payload*.

    The payload is encoded before anything touches the disk, so a value that
    cannot be serialized leaves no partial or temporary file behind. The
    bytes go to a sibling temporary file that is renamed over *path*.
    """
    data = _encode(payload, compact=False)
    path.parent.mkdir(parents=True, exist_ok=True)

    handle, temp_name = tempfile.mkstemp(dir=path.parent, prefix=temp_prefix, suffix=temp_suffix)
    try:
        with os.fdopen(handle, "wb") as stream:
            stream.write(data)
        os.replace(temp_name, path)
    except OSError:
        with suppress(FileNotFoundError):
            os.unlink(temp_name)
        raise


def remove_file(path: Path) -> bool:
    """Delete *path* if it exists, returning whether a file was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def _encode(value: object, *, compact: bool) -> bytes:
    if compact:
        text = json.dumps(value, separators=COMPACT_SEPARATORS, ensure_ascii=False)
    else:
        text = json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
    return text.encode("utf-8")
