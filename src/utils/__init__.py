# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for the curriculum sync service.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from src.utils.datetime import elapsed_ms, ensure_utc, format_iso, utc_now
from src.utils.logging import (
    bind_context,
    clear_context,
    setup_logging,
    unbind_context,
)

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    "unbind_context",
    # Datetime
    "utc_now",
    "ensure_utc",
    "format_iso",
    "elapsed_ms",
]
