# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notion content source.

This package provides the Notion API client used by the curriculum sync:
- NotionClient: Async client for pages, block trees and course structure
- Outline models: PageMetadata, ModuleOutline, LessonOutline, CourseStructure
- Exceptions: NotionError, NotionAPIError, NotionNotFoundError
"""

from src.services.notion.client import (
    NotionClient,
    is_handbook_title,
    is_resource_title,
)
from src.services.notion.exceptions import (
    NotionAPIError,
    NotionError,
    NotionNotFoundError,
)
from src.services.notion.models import (
    CourseStructure,
    LessonOutline,
    ModuleOutline,
    PageLink,
    PageMetadata,
)

__all__ = [
    # Client
    "NotionClient",
    "is_handbook_title",
    "is_resource_title",
    # Models
    "PageMetadata",
    "PageLink",
    "LessonOutline",
    "ModuleOutline",
    "CourseStructure",
    # Exceptions
    "NotionError",
    "NotionAPIError",
    "NotionNotFoundError",
]
