# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Typed models for raw Notion content nodes.

Every block returned by the Notion API is validated into one model of a
closed set, selected by its ``type`` tag. Kinds the sync does not know
about become UnsupportedNode so that the classifier can skip them.
Payloads that do not match the expected shape are rejected at this
boundary: parse_node() logs them and returns None instead of raising.

Example:
    >>> node = parse_node({"id": "b1", "type": "to_do", "to_do": {
    ...     "rich_text": [{"plain_text": "Wear goggles"}], "checked": False}})
    >>> node.text
    'Wear goggles'
"""

import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# Payloads
# =============================================================================


class RichTextRun(BaseModel):
    """One run of rich text. Only plain_text is used for classification."""

    model_config = ConfigDict(extra="allow")

    plain_text: str = ""
    href: str | None = None


def plain_text(runs: list[RichTextRun] | None) -> str:
    """Join the plain text of a rich text array."""
    if not runs:
        return ""
    return "".join(run.plain_text for run in runs)


class TextPayload(BaseModel):
    """Payload shared by paragraphs, headings, list items, toggles and quotes."""

    model_config = ConfigDict(extra="ignore")

    rich_text: list[RichTextRun] = Field(default_factory=list)
    color: str = "default"


class ToDoPayload(TextPayload):
    checked: bool = False


class Icon(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "emoji"
    emoji: str | None = None


class CalloutPayload(TextPayload):
    icon: Icon | None = None


class CodePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rich_text: list[RichTextRun] = Field(default_factory=list)
    language: str | None = None


class FileSource(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str = ""


class MediaPayload(BaseModel):
    """Image or video payload, hosted externally or as a Notion file."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    external: FileSource | None = None
    file: FileSource | None = None
    caption: list[RichTextRun] = Field(default_factory=list)

    @property
    def url(self) -> str:
        source = self.external if self.type == "external" else self.file
        return source.url if source else ""


class TablePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    table_width: int = 0
    has_column_header: bool = True
    has_row_header: bool = False


class TableRowPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cells: list[list[RichTextRun]] = Field(default_factory=list)


class ChildPagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str = ""


class LinkToPagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "page_id"
    page_id: str | None = None


# =============================================================================
# Nodes
# =============================================================================


class ExternalNode(BaseModel):
    """Base of every content node.

    Attributes:
        id: Notion block id, used as the external id of derived blocks.
        type: Kind tag.
        has_children: Whether the source reports nested blocks.
        children: Nested nodes, filled in by the fetcher up to its depth limit.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    type: str
    has_children: bool = False
    children: list["ExternalNode"] = Field(default_factory=list)


class ParagraphNode(ExternalNode):
    type: Literal["paragraph"] = "paragraph"
    paragraph: TextPayload = Field(default_factory=TextPayload)

    @property
    def text(self) -> str:
        return plain_text(self.paragraph.rich_text)


class HeadingNode(ExternalNode):
    """Heading of level 1-3; the payload lives under the kind's own key."""

    type: Literal["heading_1", "heading_2", "heading_3"]
    heading_1: TextPayload | None = None
    heading_2: TextPayload | None = None
    heading_3: TextPayload | None = None

    @property
    def payload(self) -> TextPayload:
        return getattr(self, self.type) or TextPayload()

    @property
    def text(self) -> str:
        return plain_text(self.payload.rich_text)


class ListItemNode(ExternalNode):
    type: Literal["bulleted_list_item", "numbered_list_item"]
    bulleted_list_item: TextPayload | None = None
    numbered_list_item: TextPayload | None = None

    @property
    def payload(self) -> TextPayload:
        return getattr(self, self.type) or TextPayload()

    @property
    def text(self) -> str:
        return plain_text(self.payload.rich_text)


class ToDoNode(ExternalNode):
    type: Literal["to_do"] = "to_do"
    to_do: ToDoPayload = Field(default_factory=ToDoPayload)

    @property
    def text(self) -> str:
        return plain_text(self.to_do.rich_text)


class ToggleNode(ExternalNode):
    type: Literal["toggle"] = "toggle"
    toggle: TextPayload = Field(default_factory=TextPayload)

    @property
    def text(self) -> str:
        return plain_text(self.toggle.rich_text)


class QuoteNode(ExternalNode):
    type: Literal["quote"] = "quote"
    quote: TextPayload = Field(default_factory=TextPayload)

    @property
    def text(self) -> str:
        return plain_text(self.quote.rich_text)


class CalloutNode(ExternalNode):
    type: Literal["callout"] = "callout"
    callout: CalloutPayload = Field(default_factory=CalloutPayload)

    @property
    def text(self) -> str:
        return plain_text(self.callout.rich_text)

    @property
    def emoji(self) -> str | None:
        icon = self.callout.icon
        if icon is None or icon.type != "emoji":
            return None
        return icon.emoji


class CodeNode(ExternalNode):
    type: Literal["code"] = "code"
    code: CodePayload = Field(default_factory=CodePayload)


class ImageNode(ExternalNode):
    type: Literal["image"] = "image"
    image: MediaPayload = Field(default_factory=MediaPayload)


class VideoNode(ExternalNode):
    type: Literal["video"] = "video"
    video: MediaPayload = Field(default_factory=MediaPayload)


class DividerNode(ExternalNode):
    type: Literal["divider"] = "divider"


class TableNode(ExternalNode):
    """Table block. Rows arrive as table_row children."""

    type: Literal["table"] = "table"
    table: TablePayload = Field(default_factory=TablePayload)

    @property
    def rows(self) -> list["TableRowNode"]:
        return [child for child in self.children if isinstance(child, TableRowNode)]


class TableRowNode(ExternalNode):
    type: Literal["table_row"] = "table_row"
    table_row: TableRowPayload = Field(default_factory=TableRowPayload)

    def cell_texts(self) -> list[str]:
        return [plain_text(cell) for cell in self.table_row.cells]


class ChildPageNode(ExternalNode):
    type: Literal["child_page"] = "child_page"
    child_page: ChildPagePayload = Field(default_factory=ChildPagePayload)


class LinkToPageNode(ExternalNode):
    type: Literal["link_to_page"] = "link_to_page"
    link_to_page: LinkToPagePayload = Field(default_factory=LinkToPagePayload)


class UnsupportedNode(ExternalNode):
    """Any kind outside the closed set (bookmark, embed, column_list, ...)."""


ExternalNode.model_rebuild()

NODE_MODELS: dict[str, type[ExternalNode]] = {
    "paragraph": ParagraphNode,
    "heading_1": HeadingNode,
    "heading_2": HeadingNode,
    "heading_3": HeadingNode,
    "bulleted_list_item": ListItemNode,
    "numbered_list_item": ListItemNode,
    "to_do": ToDoNode,
    "toggle": ToggleNode,
    "quote": QuoteNode,
    "callout": CalloutNode,
    "code": CodeNode,
    "image": ImageNode,
    "video": VideoNode,
    "divider": DividerNode,
    "table": TableNode,
    "table_row": TableRowNode,
    "child_page": ChildPageNode,
    "link_to_page": LinkToPageNode,
}


def parse_node(raw: Any) -> ExternalNode | None:
    """Validate one raw API block into its node model.

    Nested ``children`` in the raw mapping are ignored here; use
    parse_tree() for nested input.

    Args:
        raw: Block object as returned by the Notion API.

    Returns:
        The typed node, or None when the payload is malformed.
    """
    if not isinstance(raw, dict):
        logger.warning("Dropping non-object block payload: %r", type(raw).__name__)
        return None

    kind = raw.get("type")
    if not isinstance(kind, str):
        logger.warning("Dropping block without a type tag: %s", raw.get("id"))
        return None

    model = NODE_MODELS.get(kind, UnsupportedNode)
    data = {key: value for key, value in raw.items() if key != "children"}

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "Dropping malformed %s block %s: %d validation errors",
            kind,
            raw.get("id"),
            e.error_count(),
        )
        logger.debug("Validation errors for block %s: %s", raw.get("id"), e)
        return None


def parse_tree(raws: list[Any]) -> list[ExternalNode]:
    """Validate a nested list of raw blocks, keeping their ``children``.

    Walks the input with an explicit stack instead of recursion. Malformed
    blocks are dropped together with their subtree.

    Args:
        raws: Raw blocks, each optionally carrying a ``children`` list.

    Returns:
        Top-level nodes with children attached.
    """
    roots: list[ExternalNode] = []
    stack: list[tuple[list[ExternalNode], list[Any]]] = [(roots, raws)]

    while stack:
        target, items = stack.pop()
        for raw in items:
            node = parse_node(raw)
            if node is None:
                continue
            target.append(node)
            nested = raw.get("children") or []
            if nested:
                stack.append((node.children, nested))

    return roots
