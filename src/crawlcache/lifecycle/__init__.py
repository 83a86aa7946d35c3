"""Process lifecycle hooks."""

from __future__ import annotations

from crawlcache.lifecycle.shutdown import ShutdownCallback, ShutdownCoordinator, ShutdownOutcome

__all__ = ["ShutdownCallback", "ShutdownCoordinator", "ShutdownOutcome"]
