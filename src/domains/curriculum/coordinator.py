# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Single-flight coordination of sync runs.

At most one sync runs at a time within a process, across event loops and
worker threads. A run that finds the lock taken does not wait; it reports
the contention and returns.
"""

import logging
import threading
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from typing import Any

from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Process-local sync lock with the time of the last finished run.

    Example:
        >>> coordinator = SyncCoordinator()
        >>> async with coordinator.hold() as acquired:
        ...     if acquired:
        ...         await run_sync()
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._running = False
        self._last_sync_time: datetime | None = None

    @property
    def is_running(self) -> bool:
        """Whether a run currently holds the lock."""
        return self._running

    @property
    def last_sync_time(self) -> datetime | None:
        """When the last run released the lock."""
        return self._last_sync_time

    def try_acquire(self) -> bool:
        """Take the lock if it is free.

        Returns:
            True if the lock was taken by this call.
        """
        with self._guard:
            if self._running:
                return False
            self._running = True
            return True

    def release(self) -> None:
        """Release the lock and record the finish time."""
        with self._guard:
            self._running = False
            self._last_sync_time = utc_now()

    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        """Hold the lock for the duration of the block.

        Yields:
            Whether the lock was acquired. It is released on exit only if
            it was acquired here.
        """
        acquired = self.try_acquire()
        if not acquired:
            logger.warning("Sync requested while another sync is running")
        try:
            yield acquired
        finally:
            if acquired:
                self.release()

    def status(self) -> dict[str, Any]:
        """Lock state for status reporting."""
        return {
            "isRunning": self._running,
            "lastSyncTime": format_iso(self._last_sync_time),
        }


@lru_cache
def get_sync_coordinator() -> SyncCoordinator:
    """Get the process-wide coordinator."""
    return SyncCoordinator()
