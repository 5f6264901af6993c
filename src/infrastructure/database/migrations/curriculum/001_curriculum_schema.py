# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum schema.

Revision ID: 001_curriculum_schema
Revises: None
Create Date: 2026-02-02

Creates the course, module, lesson and block tables synced from Notion.
Each child table references its parent with ON DELETE CASCADE.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_curriculum_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _synced_columns() -> list[sa.Column]:
    """id, external_id and timestamp columns shared by all tables."""
    return [
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=False),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("external_id", sa.String(64), unique=True, nullable=False),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _parent_column(name: str, parent_table: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=False),
        sa.ForeignKey(f"{parent_table}.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create curriculum tables."""
    # ==========================================================================
    # 1. curriculum_courses
    # ==========================================================================
    op.create_table(
        "curriculum_courses",
        *_synced_columns(),
        sa.Column("slug", sa.String(100), unique=True, nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("duration_weeks", sa.Integer, nullable=False, server_default="6"),
        sa.Column("level", sa.String(100), nullable=True),
        sa.Column("accreditation", sa.String(100), nullable=True),
        sa.Column("is_handbook", sa.Boolean, nullable=False, server_default="false"),
    )

    # ==========================================================================
    # 2. curriculum_modules
    # ==========================================================================
    op.create_table(
        "curriculum_modules",
        *_synced_columns(),
        _parent_column("course_id", "curriculum_courses"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("icon", sa.String(32), nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("week_number", sa.Integer, nullable=True),
    )
    op.create_index("ix_curriculum_modules_course_id", "curriculum_modules", ["course_id"])

    # ==========================================================================
    # 3. curriculum_lessons
    # ==========================================================================
    op.create_table(
        "curriculum_lessons",
        *_synced_columns(),
        _parent_column("module_id", "curriculum_modules"),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("icon", sa.String(32), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("duration_mins", sa.Integer, nullable=True),
        sa.Column("criteria", postgresql.JSONB, nullable=False, server_default="[]"),
    )
    op.create_index("ix_curriculum_lessons_module_id", "curriculum_lessons", ["module_id"])

    # ==========================================================================
    # 4. curriculum_blocks
    # ==========================================================================
    op.create_table(
        "curriculum_blocks",
        *_synced_columns(),
        _parent_column("lesson_id", "curriculum_lessons"),
        sa.Column("block_type", sa.String(50), nullable=False),
        sa.Column("content", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("duration_mins", sa.Integer, nullable=True),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_curriculum_blocks_lesson_id", "curriculum_blocks", ["lesson_id"])
    op.create_index(
        "ix_curriculum_blocks_lesson_sort", "curriculum_blocks", ["lesson_id", "sort_order"]
    )


def downgrade() -> None:
    """Drop curriculum tables."""
    op.drop_table("curriculum_blocks")
    op.drop_table("curriculum_lessons")
    op.drop_table("curriculum_modules")
    op.drop_table("curriculum_courses")
