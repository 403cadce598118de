# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Event reporting through a client or the process-wide defaults."""

import logging
import sys
import threading
from typing import Any

from .configuration import Configuration, get_configuration
from .models import Data, Item, Level, RollbarResponse
from .payload import apply_defaults, format_exception, format_message
from .transport import ThreadedTransport, Transport, TransportConfig, TransportEvent, create_transport

logger = logging.getLogger(__name__)


class Client:
    """Reports events with a specific transport and configuration.

    Use a client instead of the module-level functions when part of an
    application needs its own token, environment or transport.

    Example:
        >>> client = Client(HttpTransport(), Configuration(access_token="..."))
        >>> client.report(format_message("This is a test"))
    """

    def __init__(self, transport: Transport, config: Configuration):
        self.transport = transport
        self.config = config.copy()

    @classmethod
    def with_default_transport(
        cls,
        config: Configuration,
        transport_config: TransportConfig | None = None,
    ) -> "Client":
        """Create a client that delivers in the background."""
        return cls(ThreadedTransport(transport_config), config)

    def report(self, data: Data) -> RollbarResponse | None:
        """Report an event.

        Args:
            data: Event built with format_message() or format_exception()

        Returns:
            Rollbar's response for synchronous transports; None when the
            transport is fire-and-forget or the event was below log_level

        Raises:
            RollbarError: When a synchronous transport fails to deliver
        """
        return _send(self.transport, self.config, data)

    def report_message(
        self,
        message: str,
        level: Level | str = Level.INFO,
        extra: dict[str, Any] | None = None,
        **fields: Any,
    ) -> RollbarResponse | None:
        return self.report(format_message(message, level=level, extra=extra, **fields))

    def report_exception(
        self,
        error: BaseException | None = None,
        level: Level | str = Level.ERROR,
        **fields: Any,
    ) -> RollbarResponse | None:
        return self.report(format_exception(_current_error(error), level=level, **fields))

    def flush(self, timeout: float | None = None) -> bool:
        return self.transport.flush(timeout)

    def close(self) -> None:
        self.transport.close()


_transport_lock = threading.Lock()
_default_transport: Transport | None = None


def get_transport() -> Transport:
    """Return the default transport, creating it on first use."""
    global _default_transport
    with _transport_lock:
        if _default_transport is None:
            _default_transport = create_transport()
        return _default_transport


def set_transport(transport: Transport | None) -> Transport | None:
    """Replace the default transport.

    Passing None makes the next report create a fresh one.

    Returns:
        The transport that was replaced, if any. It is not closed.
    """
    global _default_transport
    with _transport_lock:
        previous = _default_transport
        _default_transport = transport
        return previous


def report(data: Data) -> RollbarResponse | None:
    """Report an event using the process-wide configuration."""
    return _send(get_transport(), get_configuration(), data)


def report_message(
    message: str,
    level: Level | str = Level.INFO,
    extra: dict[str, Any] | None = None,
    **fields: Any,
) -> RollbarResponse | None:
    """Report a message.

    Example:
        >>> report_message("Cache rebuilt", level="debug", extra={"entries": 120})
    """
    return report(format_message(message, level=level, extra=extra, **fields))


def report_exception(
    error: BaseException | None = None,
    level: Level | str = Level.ERROR,
    **fields: Any,
) -> RollbarResponse | None:
    """Report an exception, by default the one currently being handled.

    Raises:
        ValueError: If no error is given and no exception is being handled
    """
    return report(format_exception(_current_error(error), level=level, **fields))


def flush(timeout: float | None = None) -> bool:
    """Wait for the default transport to deliver queued items."""
    with _transport_lock:
        transport = _default_transport
    if transport is None:
        return True
    return transport.flush(timeout)


def shutdown(timeout: float = 5.0) -> None:
    """Flush and close the default transport."""
    transport = set_transport(None)
    if transport is None:
        return
    if not transport.flush(timeout):
        logger.warning("Timed out waiting for Rollbar items to be delivered")
    transport.close()


def _send(transport: Transport, config: Configuration, data: Data) -> RollbarResponse | None:
    data = apply_defaults(data, config)
    if data.level is not None and data.level < config.log_level:
        logger.debug(
            "Skipping Rollbar event below configured level",
            extra={"event_level": data.level.label, "log_level": config.log_level.label},
        )
        return None
    return transport.send(TransportEvent(config=config, payload=Item(data=data)))


def _current_error(error: BaseException | None) -> BaseException:
    if error is not None:
        return error
    current = sys.exc_info()[1]
    if current is None:
        raise ValueError("No exception given and none is currently being handled")
    return current
