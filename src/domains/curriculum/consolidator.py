# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Consolidation of adjacent checklist fragments.

Each Notion to-do item is classified as a CHECKLIST block holding a single
item. Runs of adjacent fragments are merged into one checklist so that the
session runner can show them as a single list. Any other block ends the
run. The merged checklist keeps the id of its first fragment, which keeps
it stable across syncs as long as the first item is unchanged.
"""

from dataclasses import replace

from src.domains.curriculum.blocks import BlockType, DomainBlock


def consolidate(blocks: list[DomainBlock]) -> list[DomainBlock]:
    """Merge runs of adjacent checklist fragments and renumber.

    Args:
        blocks: Classified blocks in lesson order. Not modified.

    Returns:
        New block list with checklist runs merged and sort_order set to
        each block's index.
    """
    consolidated: list[DomainBlock] = []
    checklist: DomainBlock | None = None

    for block in blocks:
        if block.block_type == BlockType.CHECKLIST:
            items = list(block.content.get("items", []))
            if checklist is None:
                checklist = replace(block, content={"items": items})
            else:
                checklist.content["items"].extend(items)
            continue

        if checklist is not None:
            consolidated.append(checklist)
            checklist = None
        consolidated.append(block)

    if checklist is not None:
        consolidated.append(checklist)

    return [block.with_sort_order(index) for index, block in enumerate(consolidated)]
