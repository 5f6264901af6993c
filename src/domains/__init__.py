# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for the curriculum sync service.

This package contains the domain logic, independent of how content is
fetched or stored.

Domains:
    curriculum: Notion content classification and curriculum sync.
"""
