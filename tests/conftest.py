# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

# Actors register against the broker at import time; tests never talk to Redis.
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")

from src.core.config.settings import clear_settings_cache  # noqa: E402


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "development",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DB_HOST": "localhost",
        "DB_PORT": "34001",
        "DB_DATABASE": "curriculum_test",
        "REDIS_HOST": "localhost",
        "REDIS_PORT": "34002",
        "NOTION_API_KEY": "secret_test_token",
        "NOTION_RETRY_DELAY": "0",
        "NOTION_REQUESTS_PER_SECOND": "0",
    }


@pytest.fixture
def clean_settings_cache() -> Iterator[None]:
    """Clear the cached settings before and after a test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    """Write a two-course catalog and return its path."""
    path = tmp_path / "courses.yaml"
    path.write_text(
        """
courses:
  - slug: workshop-skills
    title: 6 Week Workshop Skills
    page_id: page-workshop
    duration: 6 weeks
    level: Level 1-3
    accreditation: OCN
    enabled: true
  - slug: staff-handbook
    title: Staff Handbook
    page_id: page-handbook
    is_handbook: true
    enabled: false
""",
        encoding="utf-8",
    )
    return path


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires services)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
