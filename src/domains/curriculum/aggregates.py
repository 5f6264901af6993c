# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Values derived from a lesson's finished block list.

A lesson's duration and its assessment criteria are not authored directly
in Notion; they are computed from the lesson's blocks on every sync so
that they always agree with the stored blocks.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from src.domains.curriculum.blocks import BlockType, DomainBlock
from src.domains.curriculum.classifier import BlockClassifier, classify_blocks
from src.domains.curriculum.consolidator import consolidate
from src.domains.curriculum.nodes import ExternalNode

_WEEK_PATTERN = re.compile(r"week\s*(\d+)", re.IGNORECASE)


def total_duration(blocks: Iterable[DomainBlock]) -> int:
    """Sum of declared block durations, in minutes."""
    return sum(block.duration_mins or 0 for block in blocks)


def extract_criteria(blocks: Iterable[DomainBlock]) -> list[str]:
    """Distinct criterion codes found in the lesson's assessment grids.

    Codes keep the order in which they are first seen; empty codes are
    ignored.
    """
    seen: dict[str, None] = {}
    for block in blocks:
        if block.block_type != BlockType.ASSESSMENT_GRID:
            continue
        for criterion in block.content.get("criteria", []):
            code = criterion.get("code")
            if code:
                seen.setdefault(code, None)
    return list(seen)


def week_number(title: str, index: int) -> int:
    """Week a module belongs to.

    "Week 3: Jointing" gives 3. Titles without a week fall back to the
    module's one-based position.
    """
    match = _WEEK_PATTERN.search(title)
    if match:
        return int(match.group(1))
    return index + 1


@dataclass
class LessonContent:
    """Finished blocks of one lesson with their derived aggregates."""

    blocks: list[DomainBlock]
    duration_mins: int
    criteria: list[str]


def build_lesson_content(
    nodes: list[ExternalNode],
    classifier: BlockClassifier | None = None,
) -> LessonContent:
    """Classify, consolidate and aggregate a lesson's block tree."""
    blocks = consolidate(classify_blocks(nodes, classifier))
    return LessonContent(
        blocks=blocks,
        duration_mins=total_duration(blocks),
        criteria=extract_criteria(blocks),
    )
