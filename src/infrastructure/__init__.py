# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for the curriculum sync service.

This package contains:
- Database connections, models and the curriculum store (PostgreSQL)
- Background task processing (Dramatiq)
"""
