# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Level-by-level reconciliation of fetched content against the store.

One reconcile() call handles the children of a single parent at a single
level:

1. Load the children currently stored under the parent
2. For each fetched child, in order: compute its fields, upsert it and
   reconcile its own children
3. Delete stored children that were not fetched (with their subtrees)

A failure while handling one child is recorded and the loop moves on to
the next sibling, so one broken lesson never blocks the rest of a module.

Example:
    >>> engine = ReconciliationEngine(store)
    >>> outcome = await engine.reconcile(
    ...     SyncLevel.BLOCK, lesson_id, blocks,
    ...     external_id=lambda b: b.external_id,
    ...     prepare=prepare_block,
    ... )
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from src.domains.curriculum.exceptions import (
    CurriculumSyncError,
    ReconciliationWriteError,
)
from src.domains.curriculum.results import LevelCounts, SyncError, SyncLevel, SyncResult
from src.domains.curriculum.store import CurriculumStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

PrepareFn = Callable[[T, int], Awaitable[dict[str, Any]]]
DescendFn = Callable[[T, dict[str, Any]], Awaitable["ReconcileOutcome"]]


@dataclass
class ReconcileOutcome:
    """Counts and errors of one reconcile() call, children included."""

    created: LevelCounts = field(default_factory=LevelCounts)
    updated: LevelCounts = field(default_factory=LevelCounts)
    deleted: LevelCounts = field(default_factory=LevelCounts)
    processed: LevelCounts = field(default_factory=LevelCounts)
    errors: list[SyncError] = field(default_factory=list)

    def merge(self, other: "ReconcileOutcome") -> None:
        self.created.merge(other.created)
        self.updated.merge(other.updated)
        self.deleted.merge(other.deleted)
        self.processed.merge(other.processed)
        self.errors.extend(other.errors)

    def add_error(
        self,
        level: SyncLevel,
        external_id: str,
        message: str,
        recoverable: bool = True,
    ) -> None:
        self.errors.append(SyncError(level, external_id, message, recoverable))

    def apply_to(self, result: SyncResult) -> None:
        """Add these counts and errors to a run result."""
        result.changes.created.merge(self.created)
        result.changes.updated.merge(self.updated)
        result.changes.deleted.merge(self.deleted)
        result.processed.merge(self.processed)
        result.errors.extend(self.errors)


def _error_message(error: Exception) -> str:
    if isinstance(error, CurriculumSyncError):
        return error.message
    return str(error) or type(error).__name__


class ReconciliationEngine(Generic[T]):
    """Diff-and-upsert of one level of the curriculum hierarchy.

    External ids are the only identity: a fetched child whose id is stored
    under the parent is updated, any other fetched child is created. Every
    observed child counts as updated, whether or not a field changed.
    """

    def __init__(self, store: CurriculumStore) -> None:
        """Initialize the engine.

        Args:
            store: Store that reads and writes happen against.
        """
        self._store = store

    async def reconcile(
        self,
        level: SyncLevel,
        parent_key: str | None,
        fetched: Sequence[T],
        *,
        external_id: Callable[[T], str],
        prepare: PrepareFn,
        descend: DescendFn | None = None,
        prune: bool = True,
        recoverable: bool = True,
    ) -> ReconcileOutcome:
        """Reconcile the children of one parent.

        Args:
            level: Level of the children.
            parent_key: External id of the parent, None for courses.
            fetched: Children as fetched from the source, in display order.
            external_id: Returns a child's external id.
            prepare: Computes the stored fields of a child from the child
                and its index. May fetch.
            descend: Reconciles the next level below a stored child.
            prune: Delete stored children missing from ``fetched``.
            recoverable: Whether failures of children at this level are
                recorded as recoverable. Errors from lower levels keep
                their own flag.

        Returns:
            Counts and errors for this level and everything below it.
        """
        outcome = ReconcileOutcome()

        existing = {
            entity.external_id
            for entity in await self._store.find_children(level, parent_key)
        }
        seen: set[str] = set()

        for index, child in enumerate(fetched):
            key = external_id(child)
            seen.add(key)

            try:
                fields = await prepare(child, index)

                try:
                    await self._store.upsert(level, key, parent_key, fields)
                except Exception as e:
                    raise ReconciliationWriteError(
                        level.value, key, f"Failed to write {level.value}: {e}"
                    ) from e

                if key in existing:
                    outcome.updated.add(level)
                else:
                    outcome.created.add(level)
                    existing.add(key)
                outcome.processed.add(level)

                if descend is not None:
                    outcome.merge(await descend(child, fields))

            except Exception as e:
                message = _error_message(e)
                logger.error("Failed to sync %s %s: %s", level.value, key, message)
                outcome.add_error(level, key, message, recoverable)

        if prune:
            orphans = sorted(existing - seen)
            if orphans:
                try:
                    deleted = await self._store.delete_many(level, parent_key, orphans)
                    outcome.deleted.add(level, deleted)
                    logger.info(
                        "Deleted %d orphaned %s(s) under %s",
                        deleted,
                        level.value,
                        parent_key,
                    )
                except Exception as e:
                    logger.error(
                        "Failed to delete orphaned %s(s) under %s: %s",
                        level.value,
                        parent_key,
                        e,
                    )
                    outcome.add_error(
                        level,
                        parent_key or "",
                        f"Failed to delete orphaned {level.value}s: {e}",
                    )

        return outcome
