# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Transports that deliver items to the Rollbar API."""

import json
import logging
import queue
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import requests

from . import __version__
from .config_provider import ConfigProvider, EnvConfigProvider
from .configuration import Configuration
from .exceptions import DeliveryError, MissingTokenError, RollbarError, TransportError
from .models import Item, Level, RollbarResponse

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.rollbar.com/api/1/item/"
ACCESS_TOKEN_HEADER = "X-Rollbar-Access-Token"
USER_AGENT = f"rollbar-reporter v{__version__}"


@dataclass
class TransportConfig:
    """Settings for how items are delivered.

    Attributes:
        endpoint: Item API URL
        timeout: Request timeout in seconds (default: 10)
        proxy: Optional proxy URL used for both http and https
        queue_size: Capacity of the background transport's queue (default: 100)
    """

    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 10.0
    proxy: str | None = None
    queue_size: int = 100

    @classmethod
    def from_env(cls, provider: ConfigProvider | None = None) -> "TransportConfig":
        """Load transport settings from ROLLBAR_* settings."""
        provider = provider or EnvConfigProvider()
        defaults = cls()
        return cls(
            endpoint=provider.get("ROLLBAR_ENDPOINT", defaults.endpoint),
            timeout=provider.get_float("ROLLBAR_TIMEOUT", defaults.timeout),
            proxy=provider.get("ROLLBAR_PROXY"),
            queue_size=provider.get_int("ROLLBAR_QUEUE_SIZE", defaults.queue_size),
        )


@dataclass
class TransportEvent:
    """An item together with the configuration it was built from."""

    config: Configuration
    payload: Item


class Transport(ABC):
    """Abstract base class for item transports."""

    @abstractmethod
    def send(self, event: TransportEvent) -> RollbarResponse | None:
        """Deliver an item.

        Args:
            event: Item and the configuration holding the access token

        Returns:
            Rollbar's response for synchronous transports, None otherwise
        """
        pass

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until queued items have been delivered.

        Returns:
            True if nothing is left pending
        """
        return True

    def close(self) -> None:
        """Release resources held by the transport."""
        pass


class HttpTransport(Transport):
    """Synchronous transport: one POST per item on the caller's thread.

    Errors are raised to the caller.
    """

    def __init__(
        self,
        config: TransportConfig | None = None,
        session: requests.Session | None = None,
    ):
        """Initialize HTTP transport.

        Args:
            config: Transport settings (defaults to TransportConfig())
            session: Optional pre-built requests session

        Raises:
            TransportError: If the proxy URL is not valid
        """
        self.config = config or TransportConfig()
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = USER_AGENT

        if self.config.proxy:
            parsed = urlparse(self.config.proxy)
            if not parsed.scheme or not parsed.netloc:
                raise TransportError(
                    "We could not configure Rollbar to use the proxy you provided.",
                    "Make sure that you have specified a valid proxy URL in your configuration and try again.",
                )
            self._session.proxies.update({"http": self.config.proxy, "https": self.config.proxy})

    def send(self, event: TransportEvent) -> RollbarResponse:
        """POST an item to Rollbar.

        Raises:
            MissingTokenError: If the configuration has no access token
            DeliveryError: If the request failed or Rollbar rejected the item
        """
        access_token = event.config.access_token
        if not access_token:
            raise MissingTokenError()

        body = json.dumps(event.payload.to_dict(), default=str)
        try:
            response = self._session.post(
                self.config.endpoint,
                data=body,
                headers={
                    "Content-Type": "application/json",
                    ACCESS_TOKEN_HEADER: access_token,
                },
                timeout=self.config.timeout,
            )
        except requests.RequestException as e:
            raise DeliveryError(f"We could not send the payload to Rollbar: {e}") from e

        rollbar_response = _parse_response(response)

        if not response.ok:
            detail = rollbar_response.message if rollbar_response else response.reason
            raise DeliveryError(
                f"Rollbar rejected the payload with HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
                response=rollbar_response,
            )

        if rollbar_response is None:
            rollbar_response = RollbarResponse(err=0)
        elif not rollbar_response.ok:
            raise DeliveryError(
                f"Rollbar rejected the payload: {rollbar_response.message}",
                status_code=response.status_code,
                response=rollbar_response,
            )

        logger.debug(
            "Successfully sent payload to Rollbar",
            extra={"item_id": rollbar_response.id, "item_uuid": rollbar_response.uuid},
        )
        return rollbar_response

    def close(self) -> None:
        self._session.close()


class ThreadedTransport(Transport):
    """Fire-and-forget transport backed by a single worker thread.

    Items are queued and posted in order by a daemon thread. Delivery errors
    are logged and never reach the caller.
    """

    _STOP = object()

    def __init__(
        self,
        config: TransportConfig | None = None,
        http_transport: HttpTransport | None = None,
    ):
        """Initialize threaded transport and start its worker.

        Args:
            config: Transport settings (defaults to TransportConfig())
            http_transport: Transport used by the worker (built from config if omitted)
        """
        self.config = config or TransportConfig()
        self._http = http_transport or HttpTransport(self.config)
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=self.config.queue_size)
        self._pending = 0
        self._idle = threading.Condition()
        # Orders enqueueing against close() so nothing lands behind the stop marker
        self._send_lock = threading.Lock()
        self._closed = False

        self._thread = threading.Thread(
            target=self._run, name="rollbar-transport", daemon=True
        )
        self._thread.start()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def send(self, event: TransportEvent) -> None:
        if not event.config.access_token:
            logger.debug("Skipping sending payload to Rollbar since there is no access token")
            return None
        with self._send_lock:
            if self._closed:
                logger.error("We could not send the payload to Rollbar: transport is closed")
                return None

            with self._idle:
                self._pending += 1
            try:
                self._queue.put(event, timeout=self.config.timeout)
            except queue.Full:
                self._task_done()
                logger.error("We could not send the payload to Rollbar: queue is full")
                return None

        logger.debug("Queued item to send to Rollbar")
        return None

    def flush(self, timeout: float | None = None) -> bool:
        with self._idle:
            return self._idle.wait_for(lambda: self._pending == 0, timeout=timeout)

    def close(self, timeout: float = 5.0) -> None:
        """Stop the worker once queued items are sent, waiting up to timeout seconds."""
        with self._send_lock:
            if self._closed:
                return
            self._closed = True

            try:
                self._queue.put(self._STOP, timeout=timeout)
                stopping = True
            except queue.Full:
                logger.warning("Rollbar transport queue did not drain before shutdown")
                stopping = False

        if stopping:
            self._thread.join(timeout)
        self._http.close()

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            if event is self._STOP:
                break

            try:
                self._http.send(event)
            except RollbarError as e:
                logger.error("We could not send the payload to Rollbar: %s", e)
            except Exception:
                logger.exception("Unexpected error while sending payload to Rollbar")
            finally:
                self._task_done()

        logger.info("Rollbar transport worker exiting")

    def _task_done(self) -> None:
        with self._idle:
            self._pending -= 1
            if self._pending == 0:
                self._idle.notify_all()


class ConsoleTransport(Transport):
    """Transport that writes items to the log instead of sending them.

    Useful during local development when no Rollbar project is available.
    """

    def __init__(self, logger_name: str | None = None):
        """Initialize console transport.

        Args:
            logger_name: Optional logger name to use (defaults to module logger)
        """
        self.logger = logging.getLogger(logger_name) if logger_name else logger

    def send(self, event: TransportEvent) -> None:
        data = event.payload.data
        level = data.level if data.level is not None else Level.INFO
        self.logger.log(
            int(level),
            "Rollbar item: %s",
            json.dumps(event.payload.to_dict(), default=str, sort_keys=True),
        )
        return None


class SilentTransport(Transport):
    """Transport that stores items in memory for testing.

    Useful for verifying reporting behaviour without network access.
    """

    def __init__(self):
        self.events: list[TransportEvent] = []

    @property
    def items(self) -> list[Item]:
        return [event.payload for event in self.events]

    def send(self, event: TransportEvent) -> None:
        self.events.append(event)
        return None

    def get_items(self, level: Level | str | None = None) -> list[Item]:
        """Get all sent items, optionally filtered by level."""
        if level is None:
            return self.items
        wanted = Level.parse(level)
        return [item for item in self.items if item.data.level == wanted]

    def has_items(self) -> bool:
        return len(self.events) > 0

    def clear(self) -> None:
        self.events.clear()


def create_transport(
    transport_type: str | None = None,
    config: TransportConfig | None = None,
    provider: ConfigProvider | None = None,
) -> Transport:
    """Factory function to create a transport.

    Args:
        transport_type: One of "http", "threaded", "console", "silent".
            Defaults to ROLLBAR_TRANSPORT, then "threaded".
        config: Transport settings (defaults to TransportConfig.from_env())
        provider: Source of settings (defaults to environment variables)

    Returns:
        Transport instance

    Raises:
        ValueError: If transport_type is not recognized
    """
    provider = provider or EnvConfigProvider()
    transport_type = (transport_type or provider.get("ROLLBAR_TRANSPORT") or "threaded").lower()

    if transport_type == "console":
        return ConsoleTransport()
    if transport_type == "silent":
        return SilentTransport()

    config = config or TransportConfig.from_env(provider)
    if transport_type == "http":
        return HttpTransport(config)
    if transport_type == "threaded":
        return ThreadedTransport(config)

    raise ValueError(
        f"Unknown transport_type: {transport_type}. "
        f"Must be one of: http, threaded, console, silent"
    )


def _parse_response(response: requests.Response) -> RollbarResponse | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return RollbarResponse.from_dict(payload)
