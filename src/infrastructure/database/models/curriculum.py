# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum tables synced from Notion.

Hierarchy: CurriculumCourse -> CurriculumModule -> CurriculumLesson ->
CurriculumBlock. Every child references its parent with ON DELETE CASCADE,
so deleting a course, module or lesson removes its whole subtree.
"""

from typing import Any

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SyncedMixin


class CurriculumCourse(SyncedMixin, Base):
    """A configured course. external_id is its navigation page id."""

    __tablename__ = "curriculum_courses"

    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_weeks: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    level: Mapped[str | None] = mapped_column(String(100), nullable=True)
    accreditation: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_handbook: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    modules: Mapped[list["CurriculumModule"]] = relationship(
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CurriculumModule.sort_order",
    )


class CurriculumModule(SyncedMixin, Base):
    """A module (usually one teaching week) of a course."""

    __tablename__ = "curriculum_modules"

    course_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("curriculum_courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    week_number: Mapped[int | None] = mapped_column(Integer, nullable=True)

    course: Mapped[CurriculumCourse] = relationship(back_populates="modules")
    lessons: Mapped[list["CurriculumLesson"]] = relationship(
        back_populates="module",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CurriculumLesson.sort_order",
    )


class CurriculumLesson(SyncedMixin, Base):
    """A lesson page. duration_mins and criteria are derived from its blocks."""

    __tablename__ = "curriculum_lessons"

    module_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("curriculum_modules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    icon: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_mins: Mapped[int | None] = mapped_column(Integer, nullable=True)
    criteria: Mapped[list[str]] = mapped_column(
        postgresql.JSONB, nullable=False, default=list
    )

    module: Mapped[CurriculumModule] = relationship(back_populates="lessons")
    blocks: Mapped[list["CurriculumBlock"]] = relationship(
        back_populates="lesson",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CurriculumBlock.sort_order",
    )


class CurriculumBlock(SyncedMixin, Base):
    """A classified content block of a lesson."""

    __tablename__ = "curriculum_blocks"

    lesson_id: Mapped[str] = mapped_column(
        postgresql.UUID(as_uuid=False),
        ForeignKey("curriculum_lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    block_type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[dict[str, Any]] = mapped_column(
        postgresql.JSONB, nullable=False, default=dict
    )
    duration_mins: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lesson: Mapped[CurriculumLesson] = relationship(back_populates="blocks")
