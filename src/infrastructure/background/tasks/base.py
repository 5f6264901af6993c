# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Running async code from synchronous Dramatiq actors.

Each worker thread gets one event loop, created on first use and kept
for the thread's lifetime. A sync run opens its engine and HTTP client
inside that loop and closes them before returning.
"""

import asyncio
import logging
import threading
from typing import Any, Coroutine, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_loops = threading.local()


def thread_event_loop() -> asyncio.AbstractEventLoop:
    """The event loop owned by the calling worker thread."""
    loop: asyncio.AbstractEventLoop | None = getattr(_loops, "loop", None)
    if loop is not None and not loop.is_closed():
        return loop

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    _loops.loop = loop
    logger.debug("Event loop created for worker thread %s", threading.current_thread().name)
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion on the thread's event loop.

    Example:
        @dramatiq.actor
        def sync_task():
            return run_async(run_curriculum_sync(settings, options))
    """
    return thread_event_loop().run_until_complete(coro)
