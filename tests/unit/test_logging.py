# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for logging setup and log context helpers."""

import logging

import pytest
import structlog

from src.core.config.settings import Settings
from src.utils.logging import bind_context, clear_context, setup_logging, unbind_context


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def empty_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_routes_stdlib_through_structlog(self, restore_root_logger):
        setup_logging(Settings(environment="staging", debug=False, log_level="INFO"))

        root = restore_root_logger
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_quiets_noisy_libraries(self, restore_root_logger):
        setup_logging(Settings(log_level="DEBUG"))

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("sqlalchemy").level == logging.WARNING
        assert logging.getLogger("src").level == logging.DEBUG


class TestLogContext:
    """Tests for binding and removing context values."""

    def test_bind(self):
        bind_context(sync_run_id="abc123", message_id="msg-1")

        assert structlog.contextvars.get_contextvars() == {
            "sync_run_id": "abc123",
            "message_id": "msg-1",
        }

    def test_unbind_keeps_other_keys(self):
        bind_context(sync_run_id="abc123", message_id="msg-1")

        unbind_context("sync_run_id")

        assert structlog.contextvars.get_contextvars() == {"message_id": "msg-1"}

    def test_clear(self):
        bind_context(sync_run_id="abc123")

        clear_context()

        assert structlog.contextvars.get_contextvars() == {}
