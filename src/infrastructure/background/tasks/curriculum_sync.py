# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum sync background tasks.

This module provides the background task that synchronizes curriculum
content from Notion into the curriculum database.

Tasks:
    - sync_curriculum_task: Sync one course or every enabled course

Example:
    >>> from src.infrastructure.background.tasks import sync_curriculum_task
    >>> sync_curriculum_task.send(course_slug="workshop-skills", dry_run=True)
"""

import logging
from typing import Any

import dramatiq

from src.core.config import Settings, get_settings, load_course_catalog
from src.domains.curriculum import (
    CurriculumSyncService,
    SyncOptions,
    get_sync_coordinator,
)
from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async
from src.infrastructure.database import SqlAlchemyCurriculumStore, database_sessionmaker
from src.services.notion import NotionClient

setup_dramatiq()

logger = logging.getLogger(__name__)


async def run_curriculum_sync(settings: Settings, options: SyncOptions) -> dict[str, Any]:
    """Build the sync service from settings and run one sync.

    The database engine and the Notion client live for this run only.
    The sync lock is the process-wide coordinator.

    Args:
        settings: Application settings.
        options: Sync run options.

    Returns:
        The serialized SyncResult.
    """
    catalog = load_course_catalog(settings.curriculum_sync.catalog_path)

    async with database_sessionmaker(settings) as sessionmaker:
        async with NotionClient(settings.notion) as notion:
            service = CurriculumSyncService(
                source=notion,
                store=SqlAlchemyCurriculumStore(sessionmaker),
                coordinator=get_sync_coordinator(),
                catalog=catalog,
                max_block_depth=settings.curriculum_sync.max_block_depth,
            )
            result = await service.sync_curriculum(options)

    return result.to_dict()


@dramatiq.actor(
    queue_name=Queues.CURRICULUM,
    max_retries=0,
    time_limit=1800000,  # 30 minutes (a full sync fetches every lesson)
    priority=Priority.LOW,
)
def sync_curriculum_task(
    course_slug: str | None = None,
    force_full_sync: bool = False,
    dry_run: bool = False,
) -> dict[str, Any]:
    """Sync curriculum content from Notion.

    Args:
        course_slug: Sync only this course. None syncs every enabled course.
        force_full_sync: Refetch everything instead of using cached responses.
        dry_run: Report changes without writing them.

    Returns:
        Serialized SyncResult, or a status dict when sync is disabled or
        could not start.
    """
    logger.info(
        "Starting curriculum sync task: course=%s, force_full_sync=%s, dry_run=%s",
        course_slug or "all",
        force_full_sync,
        dry_run,
    )

    settings = get_settings()
    if not settings.curriculum_sync.enabled:
        logger.info("Curriculum sync is disabled in settings")
        return {"status": "disabled"}

    options = SyncOptions(
        course_slug=course_slug,
        force_full_sync=force_full_sync,
        dry_run=dry_run,
    )

    try:
        result = run_async(run_curriculum_sync(settings, options))
        logger.info("Curriculum sync task completed: success=%s", result.get("success"))
        return result
    except Exception as e:
        logger.error("Curriculum sync task failed: %s", str(e), exc_info=True)
        return {"status": "failed", "error": str(e)}


def get_curriculum_actors() -> list:
    """Get list of curriculum actors.

    Returns:
        List of curriculum-related actors.
    """
    return [sync_curriculum_task]
