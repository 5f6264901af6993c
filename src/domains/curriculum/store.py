# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence boundary of the curriculum sync.

The reconciliation engine only needs three operations per level: list
the children stored under a parent, write one child, and delete a set of
children. Parents are addressed by their external (Notion) id; courses
have no parent and use None.

Deleting an entity removes its whole subtree. Implementations must
guarantee this, e.g. with ON DELETE CASCADE.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from src.domains.curriculum.results import SyncLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistedEntity:
    """A stored entity as seen by the reconciliation engine."""

    external_id: str
    sort_order: int = 0
    synced_at: datetime | None = None


class CurriculumStore(Protocol):
    """Storage operations used by the sync."""

    async def find_children(
        self, level: SyncLevel, parent_key: str | None
    ) -> list[PersistedEntity]:
        """Entities of ``level`` stored under the given parent."""
        ...

    async def upsert(
        self,
        level: SyncLevel,
        external_id: str,
        parent_key: str | None,
        fields: dict[str, Any],
    ) -> None:
        """Create the entity or overwrite its fields, keyed by external id."""
        ...

    async def delete_many(
        self, level: SyncLevel, parent_key: str | None, external_ids: list[str]
    ) -> int:
        """Delete entities and their subtrees. Returns the number deleted."""
        ...


class DryRunStore:
    """Store wrapper that reads through and logs writes instead of doing them.

    Entities that would be created are not visible to later reads, so the
    children of a new parent are all reported as creations.
    """

    def __init__(self, inner: CurriculumStore) -> None:
        self._inner = inner

    async def find_children(
        self, level: SyncLevel, parent_key: str | None
    ) -> list[PersistedEntity]:
        return await self._inner.find_children(level, parent_key)

    async def upsert(
        self,
        level: SyncLevel,
        external_id: str,
        parent_key: str | None,
        fields: dict[str, Any],
    ) -> None:
        logger.info(
            "[dry-run] Would upsert %s %s under %s",
            level.value,
            external_id,
            parent_key,
        )

    async def delete_many(
        self, level: SyncLevel, parent_key: str | None, external_ids: list[str]
    ) -> int:
        if external_ids:
            logger.info(
                "[dry-run] Would delete %d %s(s) under %s: %s",
                len(external_ids),
                level.value,
                parent_key,
                ", ".join(external_ids),
            )
        return len(external_ids)
