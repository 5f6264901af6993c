# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Curriculum schema migration runner.

Applies the alembic-style revision modules of the curriculum package
without the alembic CLI. Revisions are discovered from the package,
ordered by their numeric prefix, and the applied one is tracked in the
alembic_version table so the alembic CLI would see the same state.

Example:
    from src.infrastructure.database.migrations.runner import (
        get_migration_status,
        run_migrations,
    )

    applied = await run_migrations(settings.database.url)
    status = await get_migration_status(settings.database.url)

From the command line:
    python -m src.infrastructure.database.migrations.runner [upgrade|downgrade|status]
"""

import importlib
import logging
import pkgutil
import re
from collections.abc import Callable
from types import ModuleType
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from src.infrastructure.database.migrations import curriculum

logger = logging.getLogger(__name__)

_REVISION_NAME = re.compile(r"^\d{3}_\w+$")


def discover_migrations() -> list[str]:
    """Revision ids of the curriculum package, oldest first."""
    return sorted(
        info.name
        for info in pkgutil.iter_modules(curriculum.__path__)
        if _REVISION_NAME.match(info.name)
    )


def get_pending_migrations(
    current_version: str | None,
    target_revision: str | None = None,
    migrations: list[str] | None = None,
) -> list[str]:
    """Revisions to apply to get from the current version to the target.

    Args:
        current_version: Revision recorded in the database, None if none.
        target_revision: Last revision to apply. None applies all.
        migrations: Known revisions in order. Discovered if omitted.

    Returns:
        Revision ids in apply order. Empty when the current or target
        revision is unknown.
    """
    migrations = discover_migrations() if migrations is None else migrations

    start = 0
    if current_version is not None:
        if current_version not in migrations:
            logger.warning("Current version %s not in known migrations", current_version)
            return []
        start = migrations.index(current_version) + 1

    end = len(migrations)
    if target_revision is not None:
        if target_revision not in migrations:
            logger.warning("Target revision %s not found", target_revision)
            return []
        end = migrations.index(target_revision) + 1

    return migrations[start:end]


def get_revert_migrations(
    current_version: str | None,
    target_revision: str | None = None,
    migrations: list[str] | None = None,
) -> list[str]:
    """Revisions to revert, newest first, down to (not including) the target.

    A target of None reverts every applied revision.
    """
    migrations = discover_migrations() if migrations is None else migrations
    if current_version is None or current_version not in migrations:
        return []

    end = migrations.index(current_version) + 1
    start = 0
    if target_revision is not None:
        if target_revision not in migrations:
            logger.warning("Target revision %s not found", target_revision)
            return []
        start = migrations.index(target_revision) + 1

    return list(reversed(migrations[start:end]))


async def run_migrations(db_url: str, target_revision: str | None = None) -> list[str]:
    """Upgrade the curriculum database.

    Each revision runs in its own transaction together with its version
    update, so a failed revision leaves the previous one recorded.

    Args:
        db_url: Database URL (asyncpg).
        target_revision: Last revision to apply. None applies all.

    Returns:
        Applied revision ids.
    """
    engine = create_async_engine(db_url, echo=False)
    try:
        current = await _current_version(engine)
        pending = get_pending_migrations(current, target_revision)
        if not pending:
            logger.info("Curriculum schema up to date at %s", current or "None")
            return []

        logger.info("Applying %d migration(s): %s", len(pending), ", ".join(pending))
        for revision in pending:
            await _run_revision(engine, revision, "upgrade", record=revision)
            logger.info("Applied migration: %s", revision)
        return pending
    finally:
        await engine.dispose()


async def downgrade_migrations(db_url: str, target_revision: str | None = None) -> list[str]:
    """Revert the curriculum database to ``target_revision``.

    Args:
        db_url: Database URL (asyncpg).
        target_revision: Revision to keep. None reverts everything.

    Returns:
        Reverted revision ids, newest first.
    """
    engine = create_async_engine(db_url, echo=False)
    try:
        migrations = discover_migrations()
        current = await _current_version(engine)
        reverted = get_revert_migrations(current, target_revision, migrations)

        for revision in reverted:
            index = migrations.index(revision)
            previous = migrations[index - 1] if index > 0 else None
            await _run_revision(engine, revision, "downgrade", record=previous)
            logger.info("Reverted migration: %s", revision)
        return reverted
    finally:
        await engine.dispose()


async def get_migration_status(db_url: str) -> dict[str, Any]:
    """Current and pending revisions of the curriculum database."""
    engine = create_async_engine(db_url, echo=False)
    try:
        migrations = discover_migrations()
        current = await _current_version(engine)
        pending = get_pending_migrations(current, migrations=migrations)
        return {
            "current_version": current,
            "latest_version": migrations[-1] if migrations else None,
            "pending_migrations": pending,
            "is_up_to_date": not pending,
        }
    finally:
        await engine.dispose()


async def _current_version(engine: AsyncEngine) -> str | None:
    async with engine.begin() as conn:
        await _ensure_version_table(conn)
        result = await conn.execute(text("SELECT version_num FROM alembic_version LIMIT 1"))
        row = result.fetchone()
        return row[0] if row else None


async def _ensure_version_table(conn: AsyncConnection) -> None:
    await conn.execute(
        text(
            "CREATE TABLE IF NOT EXISTS alembic_version ("
            "version_num VARCHAR(128) NOT NULL, "
            "CONSTRAINT alembic_version_pkc PRIMARY KEY (version_num))"
        )
    )


def _load_revision(revision: str) -> ModuleType:
    try:
        return importlib.import_module(f"{curriculum.__name__}.{revision}")
    except ImportError as e:
        raise ImportError(f"Cannot import migration {revision}: {e}") from e


async def _run_revision(
    engine: AsyncEngine,
    revision: str,
    direction: str,
    record: str | None,
) -> None:
    """Run upgrade() or downgrade() of a revision and record the new version.

    Raises:
        ImportError: If the revision module cannot be imported.
        ValueError: If the module lacks the requested function.
    """
    step: Callable[[], None] | None = getattr(_load_revision(revision), direction, None)
    if step is None:
        raise ValueError(f"Migration {revision} has no {direction}() function")

    async with engine.begin() as conn:
        await conn.run_sync(_run_operations, step)
        await conn.execute(text("DELETE FROM alembic_version"))
        if record is not None:
            await conn.execute(
                text("INSERT INTO alembic_version (version_num) VALUES (:version)"),
                {"version": record},
            )


def _run_operations(connection: Connection, step: Callable[[], None]) -> None:
    """Run a revision function with alembic's ``op`` bound to the connection."""
    from alembic.operations import Operations
    from alembic.runtime.migration import MigrationContext

    context = MigrationContext.configure(connection)
    with Operations.context(context):
        step()


if __name__ == "__main__":
    import asyncio
    import sys

    from src.core.config import get_settings
    from src.utils.logging import setup_logging

    async def main(command: str) -> None:
        settings = get_settings()
        setup_logging(settings)
        db_url = settings.database.url

        if command == "upgrade":
            await run_migrations(db_url)
        elif command == "downgrade":
            await downgrade_migrations(db_url)
        elif command == "status":
            print(await get_migration_status(db_url))
        else:
            raise SystemExit(f"Unknown command: {command} (expected upgrade, downgrade or status)")

    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "upgrade"))
