# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq worker entry point.

Configures logging and registers the curriculum actors.

Usage:
    dramatiq src.worker --processes 1 --threads 2
"""

from src.core.config import get_settings
from src.utils.logging import setup_logging

setup_logging(get_settings())

from src.infrastructure.background.tasks import get_all_actors  # noqa: E402

ACTORS = get_all_actors()
