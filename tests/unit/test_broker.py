# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Dramatiq broker setup."""

from unittest.mock import MagicMock

import structlog
from dramatiq.brokers.stub import StubBroker

from src.infrastructure.background.broker import (
    MessageContextMiddleware,
    Queues,
    get_broker,
    setup_dramatiq,
)


class TestSetupDramatiq:
    """Tests for broker setup in test mode."""

    def test_stub_broker_in_test_mode(self):
        broker = setup_dramatiq()

        assert isinstance(broker, StubBroker)
        assert get_broker() is broker

    def test_repeated_setup_returns_same_broker(self):
        assert setup_dramatiq() is setup_dramatiq()

    def test_queues_declared(self):
        queues = setup_dramatiq().get_declared_queues()

        assert Queues.CURRICULUM in queues
        assert Queues.DEFAULT in queues

    def test_context_middleware_installed(self):
        middleware = setup_dramatiq().middleware

        assert any(isinstance(m, MessageContextMiddleware) for m in middleware)


class TestMessageContextMiddleware:
    """Tests for per-message log context."""

    def setup_method(self):
        structlog.contextvars.clear_contextvars()

    def teardown_method(self):
        structlog.contextvars.clear_contextvars()

    def _message(self):
        message = MagicMock()
        message.message_id = "msg-1"
        message.actor_name = "sync_curriculum_task"
        return message

    def test_binds_message(self):
        MessageContextMiddleware().before_process_message(MagicMock(), self._message())

        assert structlog.contextvars.get_contextvars() == {
            "message_id": "msg-1",
            "actor": "sync_curriculum_task",
        }

    def test_clears_after_processing(self):
        middleware = MessageContextMiddleware()
        message = self._message()

        middleware.before_process_message(MagicMock(), message)
        middleware.after_process_message(MagicMock(), message, exception=RuntimeError("x"))

        assert structlog.contextvars.get_contextvars() == {}

    def test_clears_after_skip(self):
        middleware = MessageContextMiddleware()
        message = self._message()

        middleware.before_process_message(MagicMock(), message)
        middleware.after_skip_message(MagicMock(), message)

        assert structlog.contextvars.get_contextvars() == {}
