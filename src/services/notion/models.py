# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Outline models of a course as laid out in Notion.

A course navigation page lists its modules (plus handbooks and resource
pages) as sub-pages or page links. Each module page lists its lessons the
same way. Only ids, titles and icons are read at this stage; lesson
content is fetched separately.
"""

from pydantic import BaseModel, Field


class PageMetadata(BaseModel):
    """Metadata of a single Notion page."""

    id: str
    title: str = "Untitled"
    icon: str | None = None
    url: str | None = None
    last_edited_time: str | None = None


class PageLink(BaseModel):
    """A sub-page or page link found on a navigation page."""

    id: str
    title: str
    icon: str | None = None

    @property
    def url(self) -> str:
        return f"/lessons/{self.id}"


class LessonOutline(BaseModel):
    id: str
    title: str
    icon: str | None = None


class ModuleOutline(BaseModel):
    id: str
    title: str
    icon: str | None = None
    lessons: list[LessonOutline] = Field(default_factory=list)


class CourseStructure(BaseModel):
    """Modules of a course, in navigation page order.

    Handbooks and resources are listed on the same page but are not
    synced as modules.
    """

    modules: list[ModuleOutline] = Field(default_factory=list)
    resources: list[PageLink] = Field(default_factory=list)
    handbooks: list[PageLink] = Field(default_factory=list)
