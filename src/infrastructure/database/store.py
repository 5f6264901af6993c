# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy implementation of the curriculum store.

Every write runs in its own transaction, so a failed write for one lesson
or block never rolls back its siblings. Rows are matched by external id;
parents are resolved from their external id on each write.

Example:
    store = SqlAlchemyCurriculumStore(get_sessionmaker())
    children = await store.find_children(SyncLevel.MODULE, course_page_id)
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domains.curriculum.results import SyncLevel
from src.domains.curriculum.store import PersistedEntity
from src.infrastructure.database.connection import DatabaseError, session_scope
from src.infrastructure.database.models.curriculum import (
    CurriculumBlock,
    CurriculumCourse,
    CurriculumLesson,
    CurriculumModule,
)
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _LevelMapping:
    model: type
    parent: type | None = None
    parent_fk: str | None = None


_LEVELS: dict[SyncLevel, _LevelMapping] = {
    SyncLevel.COURSE: _LevelMapping(CurriculumCourse),
    SyncLevel.MODULE: _LevelMapping(CurriculumModule, CurriculumCourse, "course_id"),
    SyncLevel.LESSON: _LevelMapping(CurriculumLesson, CurriculumModule, "module_id"),
    SyncLevel.BLOCK: _LevelMapping(CurriculumBlock, CurriculumLesson, "lesson_id"),
}


class SqlAlchemyCurriculumStore:
    """Curriculum store backed by the curriculum database.

    Attributes:
        _sessionmaker: Factory for the per-operation sessions.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            sessionmaker: Sessionmaker bound to the curriculum database.
        """
        self._sessionmaker = sessionmaker

    async def find_children(
        self, level: SyncLevel, parent_key: str | None
    ) -> list[PersistedEntity]:
        """Entities of ``level`` stored under the parent, in sort order."""
        mapping = _LEVELS[level]
        model = mapping.model

        stmt = select(model.external_id, model.synced_at)
        if mapping.parent is not None:
            stmt = (
                stmt.add_columns(model.sort_order)
                .join(mapping.parent, getattr(model, mapping.parent_fk) == mapping.parent.id)
                .where(mapping.parent.external_id == parent_key)
                .order_by(model.sort_order)
            )

        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(stmt)
            rows = result.all()

        return [
            PersistedEntity(
                external_id=row[0],
                synced_at=row[1],
                sort_order=row[2] if len(row) > 2 else 0,
            )
            for row in rows
        ]

    async def upsert(
        self,
        level: SyncLevel,
        external_id: str,
        parent_key: str | None,
        fields: dict[str, Any],
    ) -> None:
        """Create or overwrite one entity and stamp synced_at.

        Raises:
            DatabaseError: If the parent does not exist or the write fails.
        """
        mapping = _LEVELS[level]
        model = mapping.model

        async with session_scope(self._sessionmaker) as session:
            values = dict(fields)
            values["synced_at"] = utc_now()

            if mapping.parent is not None:
                values[mapping.parent_fk] = await self._parent_id(session, mapping, parent_key)

            result = await session.execute(
                select(model).where(model.external_id == external_id)
            )
            existing = result.scalar_one_or_none()

            if existing is not None:
                for name, value in values.items():
                    setattr(existing, name, value)
                return

            session.add(model(external_id=external_id, **values))
            await session.flush()
            logger.debug("Created %s %s", level.value, external_id)

    async def delete_many(
        self, level: SyncLevel, parent_key: str | None, external_ids: list[str]
    ) -> int:
        """Delete entities under the parent. Descendants go by ON DELETE CASCADE."""
        if not external_ids:
            return 0

        mapping = _LEVELS[level]
        model = mapping.model

        stmt = delete(model).where(model.external_id.in_(external_ids))
        if mapping.parent is not None:
            parent_id = (
                select(mapping.parent.id)
                .where(mapping.parent.external_id == parent_key)
                .scalar_subquery()
            )
            stmt = stmt.where(getattr(model, mapping.parent_fk) == parent_id)

        async with session_scope(self._sessionmaker) as session:
            result = await session.execute(stmt)
            return result.rowcount or 0

    @staticmethod
    async def _parent_id(
        session: AsyncSession, mapping: _LevelMapping, parent_key: str | None
    ) -> str:
        result = await session.execute(
            select(mapping.parent.id).where(mapping.parent.external_id == parent_key)
        )
        parent_id = result.scalar_one_or_none()
        if parent_id is None:
            raise DatabaseError(
                f"Parent {mapping.parent.__tablename__} row not found: {parent_key}"
            )
        return parent_id
