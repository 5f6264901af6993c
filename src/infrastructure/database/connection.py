# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum database connection management using SQLAlchemy async.

This module provides async connections to the curriculum database, which
stores the courses, modules, lessons and blocks synced from Notion.

Async engines are bound to the event loop they were created on, and every
Dramatiq worker thread runs its own loop. Each sync run therefore opens
its own engine with database_sessionmaker() and disposes it at the end.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    from src.infrastructure.database.connection import (
        database_sessionmaker,
        session_scope,
    )

    async with database_sessionmaker(settings) as sessionmaker:
        async with session_scope(sessionmaker) as session:
            result = await session.execute(select(CurriculumCourse))
            courses = result.scalars().all()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from src.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


def create_engine(settings: "Settings") -> AsyncEngine:
    """Create an async engine for the curriculum database.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If engine creation fails.
    """
    try:
        return create_async_engine(
            settings.database.url,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=False,
        )
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to initialize curriculum database connection", e) from e


@asynccontextmanager
async def database_sessionmaker(
    settings: "Settings",
) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Sessionmaker on a fresh engine that is disposed on exit.

    Yields:
        Sessionmaker bound to the curriculum database.
    """
    engine = create_engine(settings)
    try:
        yield async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    finally:
        await engine.dispose()


@asynccontextmanager
async def session_scope(
    sessionmaker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Open a session as one transaction.

    The session is committed on success and rolled back on exception.

    Yields:
        AsyncSession for database operations.

    Raises:
        DatabaseError: If a database operation fails.
    """
    async with sessionmaker() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseError("Database operation failed", e) from e
        except Exception:
            await session.rollback()
            raise
