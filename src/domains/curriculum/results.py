# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Options and results of a curriculum sync run.

SyncResult.to_dict() is the serialized shape returned to callers of the
sync (admin trigger, background task). Its keys are camelCase and must
stay stable.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.utils.datetime import format_iso


class SyncLevel(str, Enum):
    """Levels of the synced hierarchy, top to bottom."""

    COURSE = "course"
    MODULE = "module"
    LESSON = "lesson"
    BLOCK = "block"


@dataclass
class SyncOptions:
    """Options for one sync run.

    Attributes:
        course_slug: Sync only this course. None syncs every enabled course.
        force_full_sync: Refetch everything instead of using cached responses.
        dry_run: Compute and report changes without writing them.
    """

    course_slug: str | None = None
    force_full_sync: bool = False
    dry_run: bool = False


@dataclass
class SyncError:
    """A failure recorded during a run.

    Attributes:
        level: Level of the entity the failure belongs to.
        external_id: Notion id of the entity, or the course slug when no
            Notion id is known.
        message: Human-readable description.
        recoverable: False when the failure prevented a whole course (or
            the whole run) from syncing.
    """

    level: SyncLevel
    external_id: str
    message: str
    recoverable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "externalId": self.external_id,
            "message": self.message,
            "recoverable": self.recoverable,
        }


@dataclass
class LevelCounts:
    """One counter per level."""

    courses: int = 0
    modules: int = 0
    lessons: int = 0
    blocks: int = 0

    _FIELDS = {
        SyncLevel.COURSE: "courses",
        SyncLevel.MODULE: "modules",
        SyncLevel.LESSON: "lessons",
        SyncLevel.BLOCK: "blocks",
    }

    def add(self, level: SyncLevel, amount: int = 1) -> None:
        name = self._FIELDS[level]
        setattr(self, name, getattr(self, name) + amount)

    def get(self, level: SyncLevel) -> int:
        return getattr(self, self._FIELDS[level])

    def merge(self, other: "LevelCounts") -> None:
        for level in SyncLevel:
            self.add(level, other.get(level))

    def to_dict(self) -> dict[str, int]:
        return {
            "courses": self.courses,
            "modules": self.modules,
            "lessons": self.lessons,
            "blocks": self.blocks,
        }


@dataclass
class SyncChanges:
    """Entities created, updated and deleted during a run."""

    created: LevelCounts = field(default_factory=LevelCounts)
    updated: LevelCounts = field(default_factory=LevelCounts)
    deleted: LevelCounts = field(default_factory=LevelCounts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "created": self.created.to_dict(),
            "updated": self.updated.to_dict(),
            "deleted": self.deleted.to_dict(),
        }


@dataclass
class SyncResult:
    """Result of a sync run.

    Attributes:
        success: True when no non-recoverable error occurred.
        processed: Entities handled per level, whether written or not.
        changes: Created, updated and deleted counts per level.
        errors: Failures recorded during the run, in order.
        duration_ms: Wall-clock duration of the run.
        dry_run: Whether writes were suppressed.
        started_at: When the run started.
        completed_at: When the run finished.
    """

    success: bool = False
    processed: LevelCounts = field(default_factory=LevelCounts)
    changes: SyncChanges = field(default_factory=SyncChanges)
    errors: list[SyncError] = field(default_factory=list)
    duration_ms: int = 0
    dry_run: bool = False
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def courses_processed(self) -> int:
        return self.processed.courses

    @property
    def modules_processed(self) -> int:
        return self.processed.modules

    @property
    def lessons_processed(self) -> int:
        return self.processed.lessons

    @property
    def blocks_processed(self) -> int:
        return self.processed.blocks

    @property
    def has_fatal_errors(self) -> bool:
        return any(not error.recoverable for error in self.errors)

    def add_error(
        self,
        level: SyncLevel,
        external_id: str,
        message: str,
        recoverable: bool = True,
    ) -> None:
        """Record a failure."""
        self.errors.append(SyncError(level, external_id, message, recoverable))

    def to_dict(self) -> dict[str, Any]:
        """Serializable form of the result."""
        return {
            "success": self.success,
            "coursesProcessed": self.courses_processed,
            "modulesProcessed": self.modules_processed,
            "lessonsProcessed": self.lessons_processed,
            "blocksProcessed": self.blocks_processed,
            "errors": [error.to_dict() for error in self.errors],
            "duration": self.duration_ms,
            "changes": self.changes.to_dict(),
            "dryRun": self.dry_run,
            "startedAt": format_iso(self.started_at),
            "completedAt": format_iso(self.completed_at),
        }
