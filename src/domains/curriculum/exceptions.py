# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised inside a curriculum sync run.

The sync service catches every one of these and records it in the run's
SyncResult; none of them escapes sync_curriculum().

- CurriculumSyncError: Base exception for sync failures
- LockContentionError: Another run holds the sync lock
- SourceFetchError: Content could not be fetched from Notion
- StructureMissingError: A course has no module structure to sync
- ReconciliationWriteError: A store write for one entity failed
"""

from typing import Any


class CurriculumSyncError(Exception):
    """Base exception for curriculum sync failures.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize the sync error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class LockContentionError(CurriculumSyncError):
    """Raised when a sync is requested while another run is active."""

    def __init__(self) -> None:
        super().__init__("Sync already in progress")


class SourceFetchError(CurriculumSyncError):
    """Content for one entity could not be fetched from the source.

    Attributes:
        level: Entity level whose content was being fetched.
        external_id: Notion id of the entity.
    """

    def __init__(self, level: str, external_id: str, message: str) -> None:
        self.level = level
        self.external_id = external_id
        super().__init__(message, {"level": level, "external_id": external_id})


class StructureMissingError(CurriculumSyncError):
    """A course's navigation page yielded no modules."""

    def __init__(self, course_slug: str, reason: str | None = None) -> None:
        self.course_slug = course_slug
        message = f"No module structure found for course: {course_slug}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, {"course_slug": course_slug})


class ReconciliationWriteError(CurriculumSyncError):
    """Writing one entity to the store failed.

    Attributes:
        level: Entity level of the failed write.
        external_id: Notion id of the entity.
    """

    def __init__(self, level: str, external_id: str, message: str) -> None:
        self.level = level
        self.external_id = external_id
        super().__init__(message, {"level": level, "external_id": external_id})
