# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Error reporter interface backed by Rollbar."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from . import client as _client
from .client import Client
from .configuration import Configuration
from .models import Level
from .transport import Transport, create_transport

logger = logging.getLogger(__name__)


class ErrorReporter(ABC):
    """Abstract base class for error reporters.

    Services depend on this interface so the reporting backend can be
    swapped (for example with a SilentTransport in tests).
    """

    @abstractmethod
    def report(self, error: Exception, context: dict[str, Any] | None = None) -> None:
        """Report an exception with optional context.

        Args:
            error: The exception to report
            context: Optional dictionary with additional context
        """
        pass

    @abstractmethod
    def capture_message(
        self,
        message: str,
        level: str = "error",
        context: dict[str, Any] | None = None
    ) -> None:
        """Capture a message without an exception.

        Args:
            message: The message to capture
            level: Severity level (debug, info, warning, error, critical)
            context: Optional dictionary with additional context
        """
        pass


class RollbarErrorReporter(ErrorReporter):
    """Error reporter that sends events to Rollbar.

    Context dictionaries become the event's custom attributes.

    Example:
        reporter = create_error_reporter()
        reporter.report(exception, context={"user_id": "123"})
    """

    def __init__(self, client: Client | None = None):
        """Initialize Rollbar error reporter.

        Args:
            client: Client to report through. When omitted the process-wide
                configuration and default transport are used.
        """
        self.client = client

    def report(self, error: Exception, context: dict[str, Any] | None = None) -> None:
        fields = {"custom": dict(context)} if context else {}
        if self.client is not None:
            self.client.report_exception(error, **fields)
        else:
            _client.report_exception(error, **fields)

    def capture_message(
        self,
        message: str,
        level: str = "error",
        context: dict[str, Any] | None = None
    ) -> None:
        try:
            parsed_level = Level.parse(level)
        except ValueError:
            logger.warning(f"Unknown level {level!r}, reporting message as error")
            parsed_level = Level.ERROR

        fields = {"custom": dict(context)} if context else {}
        if self.client is not None:
            self.client.report_message(message, level=parsed_level, **fields)
        else:
            _client.report_message(message, level=parsed_level, **fields)


def create_error_reporter(
    config: Configuration | None = None,
    transport: Transport | None = None,
) -> ErrorReporter:
    """Create a Rollbar error reporter.

    Args:
        config: Reporter configuration (defaults to Configuration.from_env())
        transport: Delivery transport (defaults to create_transport())

    Returns:
        ErrorReporter bound to its own Client
    """
    config = config or Configuration.from_env()
    transport = transport or create_transport()
    return RollbarErrorReporter(Client(transport, config))
