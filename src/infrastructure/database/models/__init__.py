# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for the curriculum database."""

from src.infrastructure.database.models.base import Base, SyncedMixin, TimestampMixin
from src.infrastructure.database.models.curriculum import (
    CurriculumBlock,
    CurriculumCourse,
    CurriculumLesson,
    CurriculumModule,
)

__all__ = [
    "Base",
    "SyncedMixin",
    "TimestampMixin",
    "CurriculumCourse",
    "CurriculumModule",
    "CurriculumLesson",
    "CurriculumBlock",
]
