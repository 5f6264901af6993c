# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notion curriculum sync service.

This module synchronizes course content authored in Notion into the
curriculum database used by the teaching application.

The sync process:
1. Take the single-flight lock (a concurrent request returns at once)
2. Resolve the courses in scope from the course catalog
3. For each course: fetch its page, upsert it, then reconcile its modules,
   each module's lessons and each lesson's blocks
4. Delete modules, lessons and blocks that disappeared from Notion

Data hierarchy:
- CurriculumCourse (configured in the course catalog)
- CurriculumModule (sub-pages of the course navigation page)
- CurriculumLesson (sub-pages of a module page)
- CurriculumBlock (classified content blocks of a lesson page)

Example:
    >>> service = CurriculumSyncService(notion, store, coordinator, catalog)
    >>> result = await service.sync_curriculum(SyncOptions(course_slug="workshop-skills"))
    >>> result.to_dict()["success"]
    True
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from src.core.config.courses import CourseCatalog, CourseConfig
from src.domains.curriculum.aggregates import (
    LessonContent,
    build_lesson_content,
    week_number,
)
from src.domains.curriculum.blocks import DomainBlock
from src.domains.curriculum.classifier import BlockClassifier
from src.domains.curriculum.coordinator import SyncCoordinator
from src.domains.curriculum.exceptions import (
    LockContentionError,
    SourceFetchError,
    StructureMissingError,
)
from src.domains.curriculum.nodes import ExternalNode
from src.domains.curriculum.reconciliation import ReconcileOutcome, ReconciliationEngine
from src.domains.curriculum.results import SyncLevel, SyncOptions, SyncResult
from src.domains.curriculum.store import CurriculumStore, DryRunStore
from src.services.notion.models import (
    CourseStructure,
    LessonOutline,
    ModuleOutline,
    PageMetadata,
)
from src.utils.datetime import elapsed_ms, utc_now
from src.utils.logging import bind_context, unbind_context

logger = logging.getLogger(__name__)

SYSTEM_ERROR_ID = "system"


class ContentSource(Protocol):
    """Where course content is read from. NotionClient implements this."""

    async def fetch_page(self, page_id: str) -> PageMetadata: ...

    async def fetch_block_children(
        self, block_id: str, max_depth: int = 3
    ) -> list[ExternalNode]: ...

    async def fetch_course_structure(self, course: CourseConfig) -> CourseStructure: ...

    def clear_cache(self) -> None: ...


@dataclass
class _CourseEntry:
    config: CourseConfig
    page: PageMetadata


@dataclass
class _SyncRun:
    """State of one run: the engine it writes through and lesson content
    computed in the lesson prepare step for the block step to use."""

    engine: ReconciliationEngine
    lesson_content: dict[str, LessonContent] = field(default_factory=dict)


def _unique_outlines(
    course: CourseConfig, modules: list[ModuleOutline]
) -> list[ModuleOutline]:
    """Modules and lessons of a course with each Notion page kept once.

    A page linked from several places in the structure would otherwise be
    reparented by every parent in turn. The first occurrence wins.
    """
    seen_modules: set[str] = set()
    seen_lessons: set[str] = set()
    unique: list[ModuleOutline] = []

    for module in modules:
        if module.id in seen_modules:
            logger.warning(
                "Module %s listed more than once in course %s, keeping the first",
                module.id,
                course.slug,
            )
            continue
        seen_modules.add(module.id)

        lessons: list[LessonOutline] = []
        for lesson in module.lessons:
            if lesson.id in seen_lessons:
                logger.warning(
                    "Lesson %s already listed in an earlier module of course %s, "
                    "skipping it under module %s",
                    lesson.id,
                    course.slug,
                    module.id,
                )
                continue
            seen_lessons.add(lesson.id)
            lessons.append(lesson)

        unique.append(module.model_copy(update={"lessons": lessons}))

    return unique


class CurriculumSyncService:
    """Service for syncing curriculum content from Notion.

    Attributes:
        _source: Content source (Notion client).
        _store: Curriculum store that changes are written to.
        _coordinator: Single-flight lock shared by all runs in the process.
        _catalog: Configured courses.
        _classifier: Block classifier used for every lesson.
        _max_block_depth: Nesting levels fetched below a lesson's blocks.
    """

    def __init__(
        self,
        source: ContentSource,
        store: CurriculumStore,
        coordinator: SyncCoordinator,
        catalog: CourseCatalog,
        max_block_depth: int = 3,
        classifier: BlockClassifier | None = None,
    ) -> None:
        """Initialize the sync service.

        Args:
            source: Content source to read from.
            store: Store to write to.
            coordinator: Single-flight lock.
            catalog: Configured courses.
            max_block_depth: Nesting levels fetched below a lesson's blocks.
            classifier: Block classifier. A default one is created if omitted.
        """
        self._source = source
        self._store = store
        self._coordinator = coordinator
        self._catalog = catalog
        self._max_block_depth = max_block_depth
        self._classifier = classifier or BlockClassifier()

    # =========================================================================
    # Status
    # =========================================================================

    def is_sync_running(self) -> bool:
        """Whether a sync currently holds the lock."""
        return self._coordinator.is_running

    def get_last_sync_time(self) -> datetime | None:
        """When the last sync finished."""
        return self._coordinator.last_sync_time

    def get_sync_status(self) -> dict[str, Any]:
        """Lock state for status endpoints."""
        return self._coordinator.status()

    # =========================================================================
    # Sync
    # =========================================================================

    async def sync_curriculum(self, options: SyncOptions | None = None) -> SyncResult:
        """Sync the courses in scope from Notion.

        Never raises for sync failures; they are recorded in the result.

        Args:
            options: Run options. Defaults sync every enabled course.

        Returns:
            SyncResult with counts, changes and errors. ``success`` is False
            when any non-recoverable error occurred.
        """
        options = options or SyncOptions()
        started_at = utc_now()
        result = SyncResult(started_at=started_at, dry_run=options.dry_run)

        async with self._coordinator.hold() as acquired:
            if not acquired:
                result.add_error(
                    SyncLevel.COURSE,
                    SYSTEM_ERROR_ID,
                    LockContentionError().message,
                    recoverable=True,
                )
                return self._finish(result, started_at)

            bind_context(sync_run_id=uuid.uuid4().hex[:12])
            try:
                await self._run(options, result)
                result.success = not result.has_fatal_errors
            except Exception as e:
                logger.exception("Curriculum sync failed: %s", str(e))
                result.add_error(
                    SyncLevel.COURSE, SYSTEM_ERROR_ID, str(e), recoverable=False
                )
            finally:
                self._finish(result, started_at)
                logger.info(
                    "Curriculum sync completed: success=%s, courses=%d, modules=%d, "
                    "lessons=%d, blocks=%d, errors=%d, duration_ms=%d",
                    result.success,
                    result.courses_processed,
                    result.modules_processed,
                    result.lessons_processed,
                    result.blocks_processed,
                    len(result.errors),
                    result.duration_ms,
                )
                unbind_context("sync_run_id")

        return result

    def _finish(self, result: SyncResult, started_at: datetime) -> SyncResult:
        result.completed_at = utc_now()
        result.duration_ms = elapsed_ms(started_at, result.completed_at)
        return result

    async def _run(self, options: SyncOptions, result: SyncResult) -> None:
        courses = self._catalog.resolve(options.course_slug)
        if not courses:
            message = (
                f'Course "{options.course_slug}" not found or not enabled'
                if options.course_slug
                else "No enabled courses found"
            )
            logger.warning(message)
            result.add_error(SyncLevel.COURSE, SYSTEM_ERROR_ID, message, recoverable=False)
            return

        if options.force_full_sync:
            self._source.clear_cache()

        store: CurriculumStore = DryRunStore(self._store) if options.dry_run else self._store
        run = _SyncRun(engine=ReconciliationEngine(store))

        logger.info(
            "Starting curriculum sync: courses=%s, dry_run=%s, force_full_sync=%s",
            [course.slug for course in courses],
            options.dry_run,
            options.force_full_sync,
        )

        for course in courses:
            await self._sync_course(run, course, result)

    async def _sync_course(
        self, run: _SyncRun, course: CourseConfig, result: SyncResult
    ) -> None:
        logger.info("Starting sync for course: %s", course.slug)

        try:
            page = await self._source.fetch_page(course.page_id)
        except Exception as e:
            error = SourceFetchError(
                SyncLevel.COURSE.value,
                course.page_id,
                f"Could not fetch course page from Notion: {course.page_id} ({e})",
            )
            logger.error(error.message)
            result.add_error(
                SyncLevel.COURSE, course.page_id, error.message, recoverable=False
            )
            return

        async def prepare(entry: _CourseEntry, index: int) -> dict[str, Any]:
            return {
                "slug": entry.config.slug,
                "title": entry.page.title or entry.config.title,
                "description": entry.config.description,
                "duration_weeks": entry.config.duration_weeks,
                "level": entry.config.level,
                "accreditation": entry.config.accreditation,
                "is_handbook": entry.config.is_handbook,
            }

        async def descend(entry: _CourseEntry, fields: dict[str, Any]) -> ReconcileOutcome:
            return await self._sync_modules(run, entry.config)

        outcome = await run.engine.reconcile(
            SyncLevel.COURSE,
            None,
            [_CourseEntry(config=course, page=page)],
            external_id=lambda entry: entry.config.page_id,
            prepare=prepare,
            descend=descend,
            prune=False,
            recoverable=False,
        )
        outcome.apply_to(result)

    async def _sync_modules(self, run: _SyncRun, course: CourseConfig) -> ReconcileOutcome:
        """Reconcile a course's modules. Nothing is pruned without a structure."""
        try:
            structure = await self._source.fetch_course_structure(course)
        except Exception as e:
            return self._structure_missing(course, str(e))

        if not structure.modules:
            return self._structure_missing(course)

        modules = _unique_outlines(course, structure.modules)

        async def prepare(module: ModuleOutline, index: int) -> dict[str, Any]:
            return {
                "title": module.title,
                "icon": module.icon,
                "sort_order": index,
                "week_number": week_number(module.title, index),
            }

        async def descend(module: ModuleOutline, fields: dict[str, Any]) -> ReconcileOutcome:
            return await self._sync_lessons(run, module)

        return await run.engine.reconcile(
            SyncLevel.MODULE,
            course.page_id,
            modules,
            external_id=lambda module: module.id,
            prepare=prepare,
            descend=descend,
        )

    def _structure_missing(
        self, course: CourseConfig, reason: str | None = None
    ) -> ReconcileOutcome:
        error = StructureMissingError(course.slug, reason)
        logger.warning(error.message)
        outcome = ReconcileOutcome()
        outcome.add_error(SyncLevel.COURSE, course.page_id, error.message)
        return outcome

    async def _sync_lessons(self, run: _SyncRun, module: ModuleOutline) -> ReconcileOutcome:
        logger.info("Syncing module: %s", module.title)

        async def prepare(lesson: LessonOutline, index: int) -> dict[str, Any]:
            try:
                nodes = await self._source.fetch_block_children(
                    lesson.id, self._max_block_depth
                )
            except Exception as e:
                raise SourceFetchError(
                    SyncLevel.LESSON.value,
                    lesson.id,
                    f"Could not fetch lesson content from Notion: {e}",
                ) from e

            content = build_lesson_content(nodes, self._classifier)
            run.lesson_content[lesson.id] = content
            logger.debug(
                "Lesson %s: %d blocks, %d minutes, %d criteria",
                lesson.title,
                len(content.blocks),
                content.duration_mins,
                len(content.criteria),
            )
            return {
                "title": lesson.title,
                "icon": lesson.icon,
                "description": None,
                "sort_order": index,
                "duration_mins": content.duration_mins or None,
                "criteria": content.criteria,
            }

        async def descend(lesson: LessonOutline, fields: dict[str, Any]) -> ReconcileOutcome:
            content = run.lesson_content.pop(lesson.id)
            return await self._sync_blocks(run, lesson, content.blocks)

        try:
            return await run.engine.reconcile(
                SyncLevel.LESSON,
                module.id,
                module.lessons,
                external_id=lambda lesson: lesson.id,
                prepare=prepare,
                descend=descend,
            )
        finally:
            # Content of lessons whose upsert failed was never descended into.
            for lesson in module.lessons:
                run.lesson_content.pop(lesson.id, None)

    async def _sync_blocks(
        self, run: _SyncRun, lesson: LessonOutline, blocks: list[DomainBlock]
    ) -> ReconcileOutcome:
        async def prepare(block: DomainBlock, index: int) -> dict[str, Any]:
            return block.to_fields()

        return await run.engine.reconcile(
            SyncLevel.BLOCK,
            lesson.id,
            blocks,
            external_id=lambda block: block.external_id,
            prepare=prepare,
        )
