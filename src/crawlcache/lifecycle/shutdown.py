"""Ordered shutdown callbacks run once at interpreter exit."""

from __future__ import annotations

import asyncio
import atexit
import inspect
import logging
import signal
import sys
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import FrameType
from typing import Any

from crawlcache.constants.shutdown import DEFAULT_SHUTDOWN_LABEL

logger = logging.getLogger(__name__)

type ShutdownCallback = Callable[[], Any]


@dataclass(frozen=True)
class ShutdownOutcome:
    """Result of one shutdown callback."""

    label: str
    result: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ShutdownCoordinator:
    """Collect cleanup callbacks and run each of them exactly once.

    Callbacks may return plain values or awaitables; awaitables are awaited
    together. A failing callback is logged and reported in its outcome while
    the remaining callbacks still run.
    """

    def __init__(self) -> None:
        self._steps: list[tuple[str, ShutdownCallback]] = []
        self._started = False
        self._installed = False
        self._lock = threading.Lock()

    @property
    def started(self) -> bool:
        return self._started

    def register(self, callback: ShutdownCallback, label: str = DEFAULT_SHUTDOWN_LABEL) -> None:
        with self._lock:
            self._steps.append((label, callback))

    def run(self) -> list[ShutdownOutcome]:
        """Run every callback once; later calls return an empty list until ``reset``.

        Must not be called from a running event loop when callbacks return
        awaitables; use ``run_async`` there.
        """
        steps = self._claim()
        if not steps:
            return []
        outcomes, pending = _invoke(steps)
        if pending:
            asyncio.run(_settle(outcomes, pending))
        return _finish(outcomes)

    async def run_async(self) -> list[ShutdownOutcome]:
        """Awaitable form of ``run`` for callers already inside an event loop."""
        steps = self._claim()
        if not steps:
            return []
        outcomes, pending = _invoke(steps)
        if pending:
            await _settle(outcomes, pending)
        return _finish(outcomes)

    def reset(self) -> None:
        """Forget every callback and allow ``run`` again."""
        with self._lock:
            self._steps.clear()
            self._started = False

    def install(self) -> None:
        """Run at interpreter exit and on SIGTERM."""
        with self._lock:
            if self._installed:
                return
            self._installed = True
        atexit.register(self.run)
        if threading.current_thread() is threading.main_thread():
            signal.signal(signal.SIGTERM, self._handle_signal)

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        logger.info("Received signal %d, shutting down", signum)
        self.run()
        sys.exit(128 + signum)

    def _claim(self) -> list[tuple[str, ShutdownCallback]]:
        with self._lock:
            if self._started:
                return []
            self._started = True
            return list(self._steps)


def _invoke(
    steps: list[tuple[str, ShutdownCallback]],
) -> tuple[list[ShutdownOutcome | None], list[tuple[int, str, Awaitable[Any]]]]:
    outcomes: list[ShutdownOutcome | None] = []
    pending: list[tuple[int, str, Awaitable[Any]]] = []
    for label, callback in steps:
        try:
            result = callback()
        except Exception as exc:
            logger.exception("Shutdown step %r failed", label)
            outcomes.append(ShutdownOutcome(label=label, error=exc))
            continue
        if inspect.isawaitable(result):
            pending.append((len(outcomes), label, result))
            outcomes.append(None)
        else:
            outcomes.append(ShutdownOutcome(label=label, result=result))
    return outcomes, pending


async def _settle(
    outcomes: list[ShutdownOutcome | None],
    pending: list[tuple[int, str, Awaitable[Any]]],
) -> None:
    results = await asyncio.gather(*(awaitable for _, _, awaitable in pending), return_exceptions=True)
    for (index, label, _), result in zip(pending, results, strict=True):
        if isinstance(result, BaseException):
            logger.error("Shutdown step %r failed: %s", label, result)
            outcomes[index] = ShutdownOutcome(label=label, error=result)
        else:
            outcomes[index] = ShutdownOutcome(label=label, result=result)


def _finish(outcomes: list[ShutdownOutcome | None]) -> list[ShutdownOutcome]:
    finished = [outcome for outcome in outcomes if outcome is not None]
    failed = sum(1 for outcome in finished if not outcome.ok)
    logger.debug("Shutdown finished: %d step(s), %d failed", len(finished), failed)
    return finished
