# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum domain: Notion content sync.

This package provides the curriculum sync pipeline:
- Nodes: Typed models of raw Notion blocks
- BlockClassifier: Notion nodes to typed lesson blocks
- consolidate: Merges adjacent checklist fragments
- Aggregates: Lesson duration, assessment criteria and week numbers
- ReconciliationEngine: Diff and upsert of one hierarchy level
- SyncCoordinator: Single-flight lock for sync runs
- CurriculumSyncService: Course, module, lesson and block sync from Notion

Content is keyed by Notion id at every level, so re-running a sync
updates rows in place instead of duplicating them.
"""

from src.domains.curriculum.aggregates import (
    LessonContent,
    build_lesson_content,
    extract_criteria,
    total_duration,
    week_number,
)
from src.domains.curriculum.blocks import BlockType, DomainBlock
from src.domains.curriculum.classifier import BlockClassifier, classify_blocks
from src.domains.curriculum.consolidator import consolidate
from src.domains.curriculum.coordinator import SyncCoordinator, get_sync_coordinator
from src.domains.curriculum.exceptions import (
    CurriculumSyncError,
    LockContentionError,
    ReconciliationWriteError,
    SourceFetchError,
    StructureMissingError,
)
from src.domains.curriculum.nodes import ExternalNode, parse_node, parse_tree
from src.domains.curriculum.reconciliation import ReconcileOutcome, ReconciliationEngine
from src.domains.curriculum.results import (
    LevelCounts,
    SyncError,
    SyncLevel,
    SyncOptions,
    SyncResult,
)
from src.domains.curriculum.store import CurriculumStore, DryRunStore, PersistedEntity
from src.domains.curriculum.sync_service import ContentSource, CurriculumSyncService

__all__ = [
    # Nodes
    "ExternalNode",
    "parse_node",
    "parse_tree",
    # Blocks
    "BlockType",
    "DomainBlock",
    "BlockClassifier",
    "classify_blocks",
    "consolidate",
    # Aggregates
    "LessonContent",
    "build_lesson_content",
    "total_duration",
    "extract_criteria",
    "week_number",
    # Reconciliation
    "CurriculumStore",
    "DryRunStore",
    "PersistedEntity",
    "ReconciliationEngine",
    "ReconcileOutcome",
    # Sync
    "ContentSource",
    "CurriculumSyncService",
    "SyncCoordinator",
    "get_sync_coordinator",
    "SyncOptions",
    "SyncResult",
    "SyncError",
    "SyncLevel",
    "LevelCounts",
    # Exceptions
    "CurriculumSyncError",
    "LockContentionError",
    "SourceFetchError",
    "StructureMissingError",
    "ReconciliationWriteError",
]
