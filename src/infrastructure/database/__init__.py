# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for the curriculum database.

This package provides:
- SQLAlchemy async engine and session management
- ORM models for courses, modules, lessons and blocks
- SqlAlchemyCurriculumStore used by the curriculum sync
- A programmatic migration runner

Example:
    from src.infrastructure.database import (
        database_sessionmaker,
        SqlAlchemyCurriculumStore,
    )

    async with database_sessionmaker(settings) as sessionmaker:
        store = SqlAlchemyCurriculumStore(sessionmaker)
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    create_engine,
    database_sessionmaker,
    session_scope,
)
from src.infrastructure.database.store import SqlAlchemyCurriculumStore

__all__ = [
    "DatabaseError",
    "create_engine",
    "database_sessionmaker",
    "session_scope",
    "SqlAlchemyCurriculumStore",
]
