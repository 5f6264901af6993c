# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database migrations package.

Migrations for the curriculum database live in the curriculum subpackage
and are applied by runner.run_migrations().
"""
