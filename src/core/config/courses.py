# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Course catalog configuration.

The course catalog lists every course the sync service knows about. Each
entry points at the Notion navigation page that holds the course's modules
and lessons. The catalog is a YAML file with a top-level ``courses`` list:

    courses:
      - slug: workshop-skills
        title: 6 Week Workshop Skills
        page_id: 19f4c6153ed980429bb7dc3d65091e39
        duration: 6 weeks
        level: Level 1-3
        accreditation: OCN
        enabled: true

Example:
    >>> from pathlib import Path
    >>> from src.core.config.courses import load_course_catalog
    >>> catalog = load_course_catalog(Path("config/courses.yaml"))
    >>> [c.slug for c in catalog.enabled()]
    ['workshop-skills']
"""

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

DEFAULT_DURATION_WEEKS = 6

_WEEKS_PATTERN = re.compile(r"(\d+)")


class CatalogLoadError(Exception):
    """Raised when the course catalog cannot be loaded or validated."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialize CatalogLoadError.

        Args:
            path: Path to the catalog file that failed to load.
            reason: Description of why the file failed to load.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load course catalog '{path}': {reason}")


class CourseConfig(BaseModel):
    """A single configured course.

    Attributes:
        slug: URL-friendly identifier, also used to select a course to sync.
        title: Display title, used when the Notion page has no title.
        description: Course description stored with the course.
        page_id: Notion page id of the course navigation page.
        duration: Free-form duration such as "6 weeks".
        level: Qualification level label.
        accreditation: Accrediting body, if any.
        enabled: Disabled courses are never synced.
        is_handbook: Reference handbooks rather than taught courses.
    """

    slug: str = Field(min_length=1)
    title: str
    description: str | None = None
    page_id: str = Field(min_length=1)
    duration: str = ""
    level: str | None = None
    accreditation: str | None = None
    enabled: bool = True
    is_handbook: bool = False

    @property
    def duration_weeks(self) -> int:
        """Leading number of the duration string, or the default."""
        match = _WEEKS_PATTERN.search(self.duration)
        if match:
            return int(match.group(1))
        return DEFAULT_DURATION_WEEKS


class CourseCatalog(BaseModel):
    """Ordered list of configured courses."""

    courses: list[CourseConfig] = Field(default_factory=list)

    def enabled(self) -> list[CourseConfig]:
        """Enabled courses in catalog order."""
        return [course for course in self.courses if course.enabled]

    def resolve(self, slug: str | None = None) -> list[CourseConfig]:
        """Courses in scope for a sync run.

        Args:
            slug: Restrict to a single course. None selects every enabled course.

        Returns:
            Matching enabled courses, in catalog order.
        """
        if slug is None:
            return self.enabled()
        return [course for course in self.enabled() if course.slug == slug]


def load_course_catalog(path: Path) -> CourseCatalog:
    """Load and validate the course catalog YAML file.

    Args:
        path: Path to the catalog file.

    Returns:
        The validated catalog. An empty file yields an empty catalog.

    Raises:
        CatalogLoadError: If the file is missing, unreadable, not valid
            YAML or does not match the catalog schema.
    """
    if not path.is_file():
        raise CatalogLoadError(path, "File does not exist")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise CatalogLoadError(path, f"Cannot read file: {e}") from e

    try:
        parsed: Any = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise CatalogLoadError(path, f"Invalid YAML syntax: {e}") from e

    if parsed is None:
        return CourseCatalog()

    if not isinstance(parsed, dict):
        raise CatalogLoadError(
            path, f"YAML root must be a mapping, got {type(parsed).__name__}"
        )

    try:
        return CourseCatalog.model_validate(parsed)
    except ValidationError as e:
        raise CatalogLoadError(path, str(e)) from e
