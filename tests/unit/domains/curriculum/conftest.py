# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Fixtures for curriculum sync tests.

Provides an in-memory store with cascading deletes and a scripted content
source.
"""

from typing import Any

import pytest
from block_payloads import callout, heading, paragraph, table, todo

from src.core.config.courses import CourseCatalog, CourseConfig
from src.domains.curriculum.coordinator import SyncCoordinator
from src.domains.curriculum.nodes import ExternalNode, parse_tree
from src.domains.curriculum.results import SyncLevel
from src.domains.curriculum.store import PersistedEntity
from src.services.notion.models import (
    CourseStructure,
    LessonOutline,
    ModuleOutline,
    PageMetadata,
)

_CHILD_LEVEL = {
    SyncLevel.COURSE: SyncLevel.MODULE,
    SyncLevel.MODULE: SyncLevel.LESSON,
    SyncLevel.LESSON: SyncLevel.BLOCK,
}
_PARENT_LEVEL = {child: parent for parent, child in _CHILD_LEVEL.items()}


# =============================================================================
# In-memory store
# =============================================================================


class InMemoryStore:
    """Curriculum store over dicts, with cascading deletes.

    Attributes:
        rows: Per level, external id -> {"parent": key, "fields": dict}.
        fail_upsert: External ids whose upsert raises.
        fail_delete: Levels whose delete_many raises.
        writes: Number of upsert and delete calls made.
    """

    def __init__(self) -> None:
        self.rows: dict[SyncLevel, dict[str, dict[str, Any]]] = {
            level: {} for level in SyncLevel
        }
        self.fail_upsert: set[str] = set()
        self.fail_delete: set[SyncLevel] = set()
        self.writes = 0

    async def find_children(
        self, level: SyncLevel, parent_key: str | None
    ) -> list[PersistedEntity]:
        children = [
            PersistedEntity(
                external_id=external_id,
                sort_order=row["fields"].get("sort_order", 0),
            )
            for external_id, row in self.rows[level].items()
            if row["parent"] == parent_key
        ]
        return sorted(children, key=lambda entity: entity.sort_order)

    async def upsert(
        self,
        level: SyncLevel,
        external_id: str,
        parent_key: str | None,
        fields: dict[str, Any],
    ) -> None:
        self.writes += 1
        if external_id in self.fail_upsert:
            raise RuntimeError(f"write refused for {external_id}")
        parent_level = _PARENT_LEVEL.get(level)
        if parent_level is not None and parent_key not in self.rows[parent_level]:
            raise RuntimeError(f"missing parent {parent_key}")
        self.rows[level][external_id] = {"parent": parent_key, "fields": dict(fields)}

    async def delete_many(
        self, level: SyncLevel, parent_key: str | None, external_ids: list[str]
    ) -> int:
        self.writes += 1
        if level in self.fail_delete:
            raise RuntimeError(f"delete refused for {level.value}")
        deleted = 0
        for external_id in external_ids:
            row = self.rows[level].get(external_id)
            if row is not None and row["parent"] == parent_key:
                self._cascade(level, external_id)
                deleted += 1
        return deleted

    def _cascade(self, level: SyncLevel, external_id: str) -> None:
        del self.rows[level][external_id]
        child_level = _CHILD_LEVEL.get(level)
        if child_level is None:
            return
        orphans = [
            child_id
            for child_id, row in self.rows[child_level].items()
            if row["parent"] == external_id
        ]
        for child_id in orphans:
            self._cascade(child_level, child_id)

    def ids(self, level: SyncLevel, parent_key: str | None = None) -> list[str]:
        """Stored ids of a level in sort order, optionally under one parent."""
        rows = [
            (row["fields"].get("sort_order", 0), external_id)
            for external_id, row in self.rows[level].items()
            if parent_key is None or row["parent"] == parent_key
        ]
        return [external_id for _, external_id in sorted(rows)]

    def fields(self, level: SyncLevel, external_id: str) -> dict[str, Any]:
        return self.rows[level][external_id]["fields"]

    def snapshot(self) -> dict[SyncLevel, dict[str, dict[str, Any]]]:
        return {
            level: {key: {"parent": row["parent"], "fields": dict(row["fields"])}
                    for key, row in rows.items()}
            for level, rows in self.rows.items()
        }


# =============================================================================
# Scripted content source
# =============================================================================


class FakeSource:
    """Content source answering from in-memory pages, outlines and blocks.

    Attributes:
        pages: Page metadata by page id.
        structures: Course structure by course page id.
        blocks: Raw top-level blocks by lesson id.
        failing_lessons: Lesson ids whose content fetch raises.
        failing_structures: Course page ids whose structure fetch raises.
        cache_clears: Number of clear_cache() calls.
        block_fetches: Lesson ids in fetch order.
    """

    def __init__(self) -> None:
        self.pages: dict[str, PageMetadata] = {}
        self.structures: dict[str, CourseStructure] = {}
        self.blocks: dict[str, list[dict[str, Any]]] = {}
        self.failing_lessons: set[str] = set()
        self.failing_structures: set[str] = set()
        self.cache_clears = 0
        self.block_fetches: list[str] = []
        self.on_fetch_page = None

    async def fetch_page(self, page_id: str) -> PageMetadata:
        if self.on_fetch_page is not None:
            await self.on_fetch_page(page_id)
        if page_id not in self.pages:
            raise LookupError(f"page not found: {page_id}")
        return self.pages[page_id]

    async def fetch_block_children(
        self, block_id: str, max_depth: int = 3
    ) -> list[ExternalNode]:
        self.block_fetches.append(block_id)
        if block_id in self.failing_lessons:
            raise ConnectionError("Notion unavailable")
        return parse_tree([dict(raw) for raw in self.blocks.get(block_id, [])])

    async def fetch_course_structure(self, course: CourseConfig) -> CourseStructure:
        if course.page_id in self.failing_structures:
            raise ConnectionError("Notion unavailable")
        return self.structures.get(course.page_id, CourseStructure()).model_copy(deep=True)

    def clear_cache(self) -> None:
        self.cache_clears += 1

    def set_structure(
        self, course_page_id: str, modules: dict[str, list[str]]
    ) -> None:
        """Lay out a course: module id -> lesson ids, titles derived from ids."""
        self.structures[course_page_id] = CourseStructure(
            modules=[
                ModuleOutline(
                    id=module_id,
                    title=f"Week {index + 1}: {module_id}",
                    lessons=[
                        LessonOutline(id=lesson_id, title=f"Lesson {lesson_id}")
                        for lesson_id in lesson_ids
                    ],
                )
                for index, (module_id, lesson_ids) in enumerate(modules.items())
            ]
        )


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def course() -> CourseConfig:
    """The workshop skills course."""
    return CourseConfig(
        slug="workshop-skills",
        title="6 Week Workshop Skills",
        page_id="course-1",
        duration="6 weeks",
        level="Level 1-3",
        accreditation="OCN",
    )


@pytest.fixture
def catalog(course: CourseConfig) -> CourseCatalog:
    """Catalog with the workshop course and a disabled handbook."""
    return CourseCatalog(
        courses=[
            course,
            CourseConfig(
                slug="staff-handbook",
                title="Staff Handbook",
                page_id="course-2",
                enabled=False,
                is_handbook=True,
            ),
        ]
    )


@pytest.fixture
def source(course: CourseConfig) -> FakeSource:
    """Source with one course of two modules and three lessons."""
    fake = FakeSource()
    fake.pages[course.page_id] = PageMetadata(id=course.page_id, title="Workshop Skills")
    fake.set_structure(course.page_id, {"m1": ["l1", "l2"], "m2": ["l3"]})
    fake.blocks["l1"] = [
        heading("b1", "Welcome"),
        callout("b2", "Warm-up - 10 minutes", "⏱️"),
        todo("b3", "Goggles"),
        todo("b4", "Gloves"),
    ]
    fake.blocks["l2"] = [
        paragraph("b5", "Measure twice, cut once."),
        table("b6", [["Criterion", "Description", "Evidence"], ["1.1", "Use a saw", "Observed"]]),
    ]
    fake.blocks["l3"] = [callout("b7", "Practice - 20 min", "🔨")]
    return fake


@pytest.fixture
def coordinator() -> SyncCoordinator:
    """A fresh, unshared coordinator."""
    return SyncCoordinator()
