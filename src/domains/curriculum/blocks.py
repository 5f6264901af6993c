# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain block types produced by classification.

A DomainBlock is the normalized, typed form of one Notion block as the
teaching application stores and renders it. Its content dict is stored as
JSON, so every value placed in it must be JSON serializable.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class BlockType(str, Enum):
    """Closed set of block types stored for a lesson."""

    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    PARAGRAPH = "paragraph"
    BULLETED_LIST = "bulleted_list"
    NUMBERED_LIST = "numbered_list"
    TOGGLE = "toggle"
    QUOTE = "quote"
    CODE = "code"
    IMAGE = "image"
    VIDEO = "video"
    DIVIDER = "divider"
    CALLOUT = "callout"
    CHECKLIST = "checklist"
    SECTION_TIMER = "section_timer"
    KEY_POINT = "key_point"
    ACTIVITY = "activity"
    DISCUSSION_PROMPT = "discussion_prompt"
    MATERIALS_TABLE = "materials_table"
    ASSESSMENT_GRID = "assessment_grid"
    TABLE = "table"


@dataclass
class DomainBlock:
    """A classified lesson block.

    Attributes:
        external_id: Notion block id; the idempotency key of the stored row.
        block_type: Classified type.
        content: Type-specific structured content.
        duration_mins: Minutes this block accounts for, if it declares any.
        is_required: Whether instructors must not skip the block.
        sort_order: Position within the lesson.
    """

    external_id: str
    block_type: BlockType
    content: dict[str, Any] = field(default_factory=dict)
    duration_mins: int | None = None
    is_required: bool = False
    sort_order: int = 0

    def with_sort_order(self, sort_order: int) -> "DomainBlock":
        """Copy of this block at another position."""
        return replace(self, sort_order=sort_order)

    def to_content_dict(self) -> dict[str, Any]:
        """Nested representation used inside list and toggle content."""
        data: dict[str, Any] = {
            "id": self.external_id,
            "blockType": self.block_type.value,
            "content": self.content,
            "isRequired": self.is_required,
            "sortOrder": self.sort_order,
        }
        if self.duration_mins is not None:
            data["durationMins"] = self.duration_mins
        return data

    def to_fields(self) -> dict[str, Any]:
        """Column values written for this block."""
        return {
            "block_type": self.block_type.value,
            "content": self.content,
            "duration_mins": self.duration_mins,
            "is_required": self.is_required,
            "sort_order": self.sort_order,
        }
