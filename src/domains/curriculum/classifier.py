# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Block classifier - turns Notion nodes into instructor-friendly blocks.

Most node kinds map one to one onto a block type. Callouts and tables are
classified heuristically:

Callouts (first matching rule wins):
1. Text contains a duration such as "10 minutes", or the icon is a clock
   -> SECTION_TIMER (duration from the text, 5 minutes for a bare clock)
2. Key point icon -> KEY_POINT
3. Activity icon -> ACTIVITY
4. Discussion icon -> DISCUSSION_PROMPT
5. Otherwise CALLOUT, required only with a warning icon

Tables (first matching rule wins):
1. A header mentions materials, quantities, tools... -> MATERIALS_TABLE
2. A header mentions criteria, evidence, OCN... -> ASSESSMENT_GRID
3. Otherwise TABLE

To-do items become single-item CHECKLIST fragments which the consolidator
merges afterwards. Empty paragraphs and unknown kinds produce no block.

Example:
    >>> classifier = BlockClassifier()
    >>> blocks = classify_blocks(nodes, classifier)
"""

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from src.domains.curriculum.blocks import BlockType, DomainBlock
from src.domains.curriculum.nodes import (
    CalloutNode,
    CodeNode,
    DividerNode,
    ExternalNode,
    HeadingNode,
    ImageNode,
    ListItemNode,
    MediaPayload,
    ParagraphNode,
    QuoteNode,
    TableNode,
    ToDoNode,
    ToggleNode,
    VideoNode,
    plain_text,
)

logger = logging.getLogger(__name__)

TIMER_PATTERN = re.compile(r"(\d+)\s*(min|minute|minutes|m)\b", re.IGNORECASE)
DEFAULT_TIMER_MINUTES = 5
DEFAULT_TIMER_TITLE = "Timed Section"

MATERIALS_TABLE_HEADERS = ("material", "quantity", "notes", "item", "resource", "equipment", "tool")
ASSESSMENT_TABLE_HEADERS = ("criterion", "criteria", "evidence", "assessment", "learning outcome", "ocn")

_VARIATION_SELECTOR = "\ufe0f"


def _emoji_set(*emojis: str) -> frozenset[str]:
    return frozenset(e.replace(_VARIATION_SELECTOR, "") for e in emojis)


TIMER_EMOJIS = _emoji_set("⏱️", "⏰", "🕐", "🕑", "🕒", "🕓", "🕔", "🕕")
KEY_POINT_EMOJIS = _emoji_set("💡", "⭐", "📌", "🔑", "✨")
ACTIVITY_EMOJIS = _emoji_set("🔨", "🛠️", "✋", "👐", "🎯", "✍️", "🔧")
DISCUSSION_EMOJIS = _emoji_set("💬", "🗣️", "❓", "🤔", "💭")
WARNING_EMOJIS = _emoji_set("⚠️", "🚨", "❗", "⛔")

_HEADING_TYPES = {
    "heading_1": BlockType.HEADING_1,
    "heading_2": BlockType.HEADING_2,
    "heading_3": BlockType.HEADING_3,
}
_LIST_TYPES = {
    "bulleted_list_item": BlockType.BULLETED_LIST,
    "numbered_list_item": BlockType.NUMBERED_LIST,
}


def _normalize_emoji(emoji: str | None) -> str | None:
    if emoji is None:
        return None
    return emoji.replace(_VARIATION_SELECTOR, "")


def _timer_title(text: str) -> str:
    title = TIMER_PATTERN.sub("", text, count=1).strip()
    title = title.rstrip("-–—:|").strip()
    return title or DEFAULT_TIMER_TITLE


class BlockClassifier:
    """Maps one node (and its already fetched children) to a DomainBlock.

    Handlers are looked up by node model class. A node whose class has no
    handler is not part of lesson content and is skipped.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[ExternalNode], Callable[[Any, int], DomainBlock | None]] = {
            CalloutNode: self._classify_callout,
            ToDoNode: self._classify_todo,
            TableNode: self._classify_table,
            ParagraphNode: self._classify_paragraph,
            HeadingNode: self._classify_heading,
            ListItemNode: self._classify_list_item,
            ToggleNode: self._classify_toggle,
            QuoteNode: self._classify_quote,
            CodeNode: self._classify_code,
            ImageNode: self._classify_image,
            VideoNode: self._classify_video,
            DividerNode: self._classify_divider,
        }

    def classify(self, node: ExternalNode, sort_order: int = 0) -> DomainBlock | None:
        """Classify a single node.

        Args:
            node: Validated content node.
            sort_order: Provisional position of the block.

        Returns:
            The classified block, or None if the node produces no block.
        """
        handler = self._handlers.get(type(node))
        if handler is None:
            logger.debug("Skipping unsupported block %s of type %s", node.id, node.type)
            return None
        return handler(node, sort_order)

    # =========================================================================
    # Heuristic kinds
    # =========================================================================

    def _classify_callout(self, node: CalloutNode, sort_order: int) -> DomainBlock:
        text = node.text
        icon = node.emoji
        emoji = _normalize_emoji(icon)
        color = node.callout.color

        timer_match = TIMER_PATTERN.search(text)
        if timer_match or emoji in TIMER_EMOJIS:
            minutes = int(timer_match.group(1)) if timer_match else DEFAULT_TIMER_MINUTES
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.SECTION_TIMER,
                content={
                    "title": _timer_title(text),
                    "durationMinutes": minutes,
                    "icon": icon,
                    "color": color,
                },
                duration_mins=minutes,
                is_required=True,
                sort_order=sort_order,
            )

        if emoji in KEY_POINT_EMOJIS:
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.KEY_POINT,
                content={"text": text, "icon": icon, "color": color},
                is_required=True,
                sort_order=sort_order,
            )

        if emoji in ACTIVITY_EMOJIS:
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.ACTIVITY,
                content={"instructions": text, "icon": icon, "color": color},
                is_required=True,
                sort_order=sort_order,
            )

        if emoji in DISCUSSION_EMOJIS:
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.DISCUSSION_PROMPT,
                content={"prompt": text, "icon": icon, "color": color},
                sort_order=sort_order,
            )

        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.CALLOUT,
            content={"text": text, "icon": icon, "color": color},
            is_required=emoji in WARNING_EMOJIS,
            sort_order=sort_order,
        )

    def _classify_table(self, node: TableNode, sort_order: int) -> DomainBlock:
        rows = node.rows
        if not rows:
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.TABLE,
                content={"headers": [], "rows": []},
                sort_order=sort_order,
            )

        headers = [cell.lower() for cell in rows[0].cell_texts()]
        data_rows = [row.cell_texts() for row in rows[1:]]

        def column(row: list[str], index: int) -> str:
            return row[index] if index < len(row) else ""

        if any(keyword in header for header in headers for keyword in MATERIALS_TABLE_HEADERS):
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.MATERIALS_TABLE,
                content={
                    "headers": headers,
                    "items": [
                        {
                            "name": column(row, 0),
                            "quantity": column(row, 1),
                            "notes": column(row, 2),
                        }
                        for row in data_rows
                    ],
                },
                is_required=True,
                sort_order=sort_order,
            )

        if any(keyword in header for header in headers for keyword in ASSESSMENT_TABLE_HEADERS):
            return DomainBlock(
                external_id=node.id,
                block_type=BlockType.ASSESSMENT_GRID,
                content={
                    "headers": headers,
                    "criteria": [
                        {
                            "code": column(row, 0),
                            "description": column(row, 1),
                            "evidenceGuidance": column(row, 2),
                        }
                        for row in data_rows
                    ],
                },
                is_required=True,
                sort_order=sort_order,
            )

        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.TABLE,
            content={
                "headers": headers,
                "rows": data_rows,
                "hasHeader": node.table.has_column_header,
            },
            sort_order=sort_order,
        )

    # =========================================================================
    # One-to-one kinds
    # =========================================================================

    def _classify_todo(self, node: ToDoNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.CHECKLIST,
            content={"items": [{"text": node.text, "checked": node.to_do.checked}]},
            is_required=True,
            sort_order=sort_order,
        )

    def _classify_paragraph(self, node: ParagraphNode, sort_order: int) -> DomainBlock | None:
        text = node.text
        if not text.strip():
            return None
        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.PARAGRAPH,
            content={
                "text": text,
                "richText": [run.model_dump(exclude_none=True) for run in node.paragraph.rich_text],
            },
            sort_order=sort_order,
        )

    def _classify_heading(self, node: HeadingNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=_HEADING_TYPES[node.type],
            content={"text": node.text, "color": node.payload.color},
            sort_order=sort_order,
        )

    def _classify_list_item(self, node: ListItemNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=_LIST_TYPES[node.type],
            content={"text": node.text, "children": self._classify_children(node)},
            sort_order=sort_order,
        )

    def _classify_toggle(self, node: ToggleNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.TOGGLE,
            content={"title": node.text, "children": self._classify_children(node)},
            sort_order=sort_order,
        )

    def _classify_quote(self, node: QuoteNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.QUOTE,
            content={"text": node.text, "color": node.quote.color},
            sort_order=sort_order,
        )

    def _classify_code(self, node: CodeNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.CODE,
            content={
                "code": plain_text(node.code.rich_text),
                "language": node.code.language or "plain",
            },
            sort_order=sort_order,
        )

    def _classify_image(self, node: ImageNode, sort_order: int) -> DomainBlock:
        return self._media_block(node, node.image, BlockType.IMAGE, sort_order)

    def _classify_video(self, node: VideoNode, sort_order: int) -> DomainBlock:
        return self._media_block(node, node.video, BlockType.VIDEO, sort_order)

    def _classify_divider(self, node: DividerNode, sort_order: int) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=BlockType.DIVIDER,
            content={},
            sort_order=sort_order,
        )

    def _media_block(
        self,
        node: ExternalNode,
        media: MediaPayload,
        block_type: BlockType,
        sort_order: int,
    ) -> DomainBlock:
        return DomainBlock(
            external_id=node.id,
            block_type=block_type,
            content={
                "url": media.url,
                "caption": plain_text(media.caption),
                "type": media.type,
            },
            sort_order=sort_order,
        )

    def _classify_children(self, node: ExternalNode) -> list[dict[str, Any]]:
        return [block.to_content_dict() for block in classify_blocks(node.children, self)]


def classify_blocks(
    nodes: Iterable[ExternalNode],
    classifier: BlockClassifier | None = None,
) -> list[DomainBlock]:
    """Classify a sequence of sibling nodes, dropping those without a block.

    Args:
        nodes: Sibling nodes in source order.
        classifier: Classifier to use. A default one is created if omitted.

    Returns:
        Classified blocks with dense provisional sort orders.
    """
    classifier = classifier or BlockClassifier()
    blocks: list[DomainBlock] = []
    for node in nodes:
        block = classifier.classify(node, len(blocks))
        if block is not None:
            blocks.append(block)
    return blocks
