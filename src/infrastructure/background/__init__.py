# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task infrastructure for the curriculum sync worker.

Provides background task processing with Dramatiq:
- Redis broker for message persistence and durability
- The curriculum sync actor

Quick Start:
    from src.infrastructure.background import setup_dramatiq
    setup_dramatiq()

    from src.infrastructure.background.tasks import sync_curriculum_task
    sync_curriculum_task.send()

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 1 --threads 2
"""

from src.infrastructure.background.broker import (
    BrokerManager,
    Priority,
    Queues,
    get_broker,
    get_broker_manager,
    setup_dramatiq,
    shutdown_dramatiq,
)

__all__ = [
    "BrokerManager",
    "Priority",
    "Queues",
    "get_broker",
    "get_broker_manager",
    "setup_dramatiq",
    "shutdown_dramatiq",
]
