"""Constants for the shutdown coordinator."""

from __future__ import annotations

DEFAULT_SHUTDOWN_LABEL: str = " "
STORE_SHUTDOWN_LABEL: str = "Saving cache to disk."
