# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Dramatiq broker configuration for the curriculum sync worker.

The worker talks to Redis for messages and results. Tests set
DRAMATIQ_TEST_MODE=true and get an in-memory StubBroker instead.

Every processed message has its id and actor name bound into the
structlog context, so log lines from a sync run can be traced back to
the message that triggered it.

Example:
    from src.infrastructure.background.broker import setup_dramatiq

    broker = setup_dramatiq()
"""

import logging
import os
from typing import Any

import dramatiq
from dramatiq import Message, Middleware
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from dramatiq.results import Results
from dramatiq.results.backends.redis import RedisBackend

from src.core.config import get_settings
from src.utils.logging import bind_context, clear_context

logger = logging.getLogger(__name__)

# Sync results are small; keep them for a day for status lookups.
RESULT_TTL_MS = 24 * 60 * 60 * 1000


class Queues:
    """Queue name constants for task routing."""

    DEFAULT = "default"
    CURRICULUM = "curriculum"


class Priority:
    """Task priority levels (lower number = higher priority)."""

    HIGH = 1
    NORMAL = 3
    LOW = 5


class MessageContextMiddleware(Middleware):
    """Binds the message being processed into the structlog context."""

    def before_process_message(self, broker: dramatiq.Broker, message: Message) -> None:
        bind_context(message_id=message.message_id, actor=message.actor_name)

    def after_process_message(
        self,
        broker: dramatiq.Broker,
        message: Message,
        *,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        clear_context()

    def after_skip_message(self, broker: dramatiq.Broker, message: Message) -> None:
        clear_context()


def is_test_mode() -> bool:
    """Whether DRAMATIQ_TEST_MODE asks for the in-memory broker."""
    return os.getenv("DRAMATIQ_TEST_MODE", "false").lower() == "true"


class BrokerManager:
    """Owns the process broker.

    Attributes:
        _broker: The Dramatiq broker, None until setup() runs.
    """

    def __init__(self) -> None:
        self._broker: dramatiq.Broker | None = None

    @property
    def broker(self) -> dramatiq.Broker:
        """The configured broker.

        Raises:
            RuntimeError: If setup() has not been called.
        """
        if self._broker is None:
            raise RuntimeError("Broker not initialized. Call setup() first.")
        return self._broker

    @property
    def is_initialized(self) -> bool:
        return self._broker is not None

    def setup(self) -> dramatiq.Broker:
        """Create the broker once and make it Dramatiq's global broker."""
        if self._broker is not None:
            return self._broker

        if is_test_mode():
            broker: dramatiq.Broker = StubBroker()
            broker.emit_after("process_boot")
            logger.info("Using StubBroker for curriculum tasks")
        else:
            redis_url = get_settings().redis.url
            broker = RedisBroker(url=redis_url)
            broker.add_middleware(
                Results(backend=RedisBackend(url=redis_url), result_ttl=RESULT_TTL_MS)
            )
            # Host and database only; the URL may carry a password.
            logger.info("Redis broker initialized (%s)", redis_url.split("@")[-1])

        broker.add_middleware(MessageContextMiddleware())
        for queue_name in (Queues.DEFAULT, Queues.CURRICULUM):
            broker.declare_queue(queue_name)

        dramatiq.set_broker(broker)
        self._broker = broker
        return broker

    def shutdown(self) -> None:
        if self._broker is None:
            return
        self._broker.close()
        self._broker = None
        logger.info("Broker shutdown complete")


_broker_manager = BrokerManager()


def get_broker_manager() -> BrokerManager:
    """The process broker manager."""
    return _broker_manager


def setup_dramatiq() -> dramatiq.Broker:
    """Set up the broker from settings; repeated calls return the same broker."""
    return _broker_manager.setup()


def get_broker() -> dramatiq.Broker:
    """The current broker.

    Raises:
        RuntimeError: If setup_dramatiq() has not been called.
    """
    return _broker_manager.broker


def shutdown_dramatiq() -> None:
    """Close the broker; the next setup_dramatiq() creates a new one."""
    _broker_manager.shutdown()
