"""Curriculum Sync Backend.

Synchronizes course content authored in Notion into the normalized
course, module, lesson and block tables used by the teaching application.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "0.1.0"
