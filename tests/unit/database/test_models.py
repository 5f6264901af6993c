# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, keys, and cascade configuration.
"""

import pytest

from src.infrastructure.database.models import (
    Base,
    CurriculumBlock,
    CurriculumCourse,
    CurriculumLesson,
    CurriculumModule,
)


class TestBase:
    """Test base model functionality."""

    def test_all_tables_registered(self):
        assert set(Base.metadata.tables) == {
            "curriculum_courses",
            "curriculum_modules",
            "curriculum_lessons",
            "curriculum_blocks",
        }


class TestSyncedColumns:
    """Test columns shared by every synced table."""

    @pytest.mark.parametrize(
        "model", [CurriculumCourse, CurriculumModule, CurriculumLesson, CurriculumBlock]
    )
    def test_external_id_unique(self, model):
        column = model.__table__.c.external_id

        assert column.unique is True
        assert column.nullable is False

    @pytest.mark.parametrize(
        "model", [CurriculumCourse, CurriculumModule, CurriculumLesson, CurriculumBlock]
    )
    def test_timestamps(self, model):
        columns = model.__table__.c

        assert "synced_at" in columns
        assert "created_at" in columns
        assert "updated_at" in columns


class TestHierarchy:
    """Test parent keys and cascades."""

    @pytest.mark.parametrize(
        "model,column,parent_table",
        [
            (CurriculumModule, "course_id", "curriculum_courses"),
            (CurriculumLesson, "module_id", "curriculum_modules"),
            (CurriculumBlock, "lesson_id", "curriculum_lessons"),
        ],
    )
    def test_parent_fk_cascades(self, model, column, parent_table):
        foreign_key = next(iter(model.__table__.c[column].foreign_keys))

        assert foreign_key.column.table.name == parent_table
        assert foreign_key.ondelete == "CASCADE"

    @pytest.mark.parametrize(
        "model,relationship",
        [
            (CurriculumCourse, "modules"),
            (CurriculumModule, "lessons"),
            (CurriculumLesson, "blocks"),
        ],
    )
    def test_children_delete_orphan(self, model, relationship):
        prop = model.__mapper__.relationships[relationship]

        assert prop.cascade.delete_orphan is True
        assert prop.passive_deletes is True

    def test_lesson_criteria_json(self):
        assert CurriculumLesson.__table__.c.criteria.type.__class__.__name__ == "JSONB"
