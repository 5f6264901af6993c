# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for the curriculum sync service.

This package provides centralized configuration management:
- Settings: Pydantic-based settings loaded from environment variables
- Course catalog: YAML list of the courses to sync

Example:
    >>> from src.core.config import get_settings, load_course_catalog
    >>> settings = get_settings()
    >>> catalog = load_course_catalog(settings.curriculum_sync.catalog_path)
"""

from src.core.config.courses import (
    CatalogLoadError,
    CourseCatalog,
    CourseConfig,
    load_course_catalog,
)
from src.core.config.settings import (
    CurriculumSyncSettings,
    DatabaseSettings,
    NotionSettings,
    RedisSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "RedisSettings",
    "NotionSettings",
    "CurriculumSyncSettings",
    # Course catalog
    "CourseConfig",
    "CourseCatalog",
    "CatalogLoadError",
    "load_course_catalog",
]
