# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors for the curriculum sync worker.

Usage:
    from src.infrastructure.background.tasks import sync_curriculum_task

    sync_curriculum_task.send(course_slug="workshop-skills")

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 1 --threads 2
"""

from src.infrastructure.background.tasks.base import run_async
from src.infrastructure.background.tasks.curriculum_sync import (
    get_curriculum_actors,
    run_curriculum_sync,
    sync_curriculum_task,
)

__all__ = [
    "sync_curriculum_task",
    "run_curriculum_sync",
    "run_async",
    "get_all_actors",
]


def get_all_actors() -> list:
    """Get list of all defined actors."""
    return list(get_curriculum_actors())
