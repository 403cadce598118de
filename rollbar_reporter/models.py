# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Data models for Rollbar items.

These mirror the JSON accepted by the Rollbar item API
(``POST /api/1/item/``). Every model serialises through ``to_dict()``, which
leaves out fields that were not set.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Union


class Level(IntEnum):
    """Severity of a reported event, ordered from least to most severe.

    Values line up with the standard library logging levels so a level can be
    passed straight to ``logging.Logger.log``.
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def label(self) -> str:
        """Lowercase name used on the wire."""
        return self.name.lower()

    @classmethod
    def parse(cls, value: "Level | str") -> "Level":
        """Convert a level name (case-insensitive) or Level into a Level.

        Args:
            value: Level instance, or a name such as "warning" or "fatal"

        Returns:
            Matching Level

        Raises:
            ValueError: If the value does not name a level
        """
        if isinstance(value, Level):
            return value
        if isinstance(value, str):
            name = value.strip().upper()
            if name == "FATAL":
                return cls.CRITICAL
            if name == "WARN":
                return cls.WARNING
            if name in cls.__members__:
                return cls[name]
        raise ValueError(
            f"Invalid level: {value!r}. Must be one of "
            f"{[level.label for level in cls]}"
        )


@dataclass
class Frame:
    """A single stack frame, most recent call last in a trace."""

    filename: str
    lineno: int | None = None
    colno: int | None = None
    method: str | None = None
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "filename": self.filename,
            "lineno": self.lineno,
            "colno": self.colno,
            "method": self.method,
            "code": self.code,
        })


@dataclass
class ExceptionInfo:
    """Type, message and description of a reported exception."""

    class_name: str
    message: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "class": self.class_name,
            "message": self.message,
            "description": self.description,
        })


@dataclass
class Trace:
    """Stack trace body."""

    exception: ExceptionInfo
    frames: list[Frame] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace": {
                "frames": [frame.to_dict() for frame in self.frames],
                "exception": self.exception.to_dict(),
            }
        }


@dataclass
class Message:
    """Plain message body.

    Keys in ``extra`` are flattened into the message object next to ``body``.
    """

    body: str
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        message = dict(self.extra)
        message["body"] = self.body
        return {"message": message}


Body = Union[Message, Trace]


@dataclass
class Notifier:
    """Identifies the library that produced an item."""

    name: str
    version: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


@dataclass
class Person:
    """The user affected by an event.

    Attributes:
        id: Identifier of the user in the application
        username: Display name
        email: Email address
    """

    id: str
    username: str | None = None
    email: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({"id": self.id, "username": self.username, "email": self.email})


@dataclass
class Request:
    """The HTTP request being handled when an event happened.

    Attributes:
        url: Full URL of the request
        method: HTTP verb
        headers: Request headers
        params: Route parameters
        get: Query string parameters
        query_string: Raw query string
        post: Form parameters
        body: Raw request body
        user_ip: Address of the client
    """

    url: str | None = None
    method: str | None = None
    headers: dict[str, str] | None = None
    params: dict[str, Any] | None = None
    get: dict[str, Any] | None = None
    query_string: str | None = None
    post: dict[str, Any] | None = None
    body: str | None = None
    user_ip: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "url": self.url,
            "method": self.method,
            "headers": self.headers,
            "params": self.params,
            "GET": self.get,
            "query_string": self.query_string,
            "POST": self.post,
            "body": self.body,
            "user_ip": self.user_ip,
        })


@dataclass
class Server:
    """The machine and checkout that produced an event.

    Attributes:
        host: Hostname
        root: Path to the application code root
        branch: Checked out branch
        code_version: Revision deployed on this server
    """

    host: str | None = None
    root: str | None = None
    branch: str | None = None
    code_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "host": self.host,
            "root": self.root,
            "branch": self.branch,
            "code_version": self.code_version,
        })


@dataclass
class Data:
    """One reported event.

    Attributes:
        body: Message or Trace describing what happened
        level: Severity; filled with INFO when left unset
        timestamp: Seconds since the epoch
        environment: Deployment environment, e.g. "production"
        code_version: Version or revision of the running code
        platform: Operating system or runtime platform
        language: Source language of the application
        framework: Application framework, if any
        context: Identifier for where the event happened, e.g. "project#index"
        title: Custom title for the item in Rollbar
        fingerprint: Custom grouping key
        host: Name of the server that produced the event
        person: User affected by the event
        request: HTTP request being handled
        server: Details of the machine; host is merged into it
        custom: Arbitrary JSON-serialisable attributes
        uuid: Unique identifier used for de-duplication
        notifier: Library that produced the event
    """

    body: Body
    level: Level | None = None
    timestamp: int | None = None
    environment: str | None = None
    code_version: str | None = None
    platform: str | None = None
    language: str | None = None
    framework: str | None = None
    context: str | None = None
    title: str | None = None
    fingerprint: str | None = None
    host: str | None = None
    person: Person | dict[str, Any] | None = None
    request: Request | dict[str, Any] | None = None
    server: Server | dict[str, Any] | None = None
    custom: dict[str, Any] | None = None
    uuid: str | None = None
    notifier: Notifier | None = None

    def to_dict(self) -> dict[str, Any]:
        return _compact({
            "environment": self.environment,
            "body": self.body.to_dict(),
            "level": self.level.label if self.level is not None else None,
            "timestamp": self.timestamp,
            "code_version": self.code_version,
            "platform": self.platform,
            "language": self.language,
            "framework": self.framework,
            "context": self.context,
            "title": self.title,
            "fingerprint": self.fingerprint,
            "person": _as_dict(self.person),
            "request": _as_dict(self.request),
            "server": self._server_dict(),
            "custom": self.custom,
            "uuid": self.uuid,
            "notifier": self.notifier.to_dict() if self.notifier else None,
        })

    def _server_dict(self) -> dict[str, Any] | None:
        server = _as_dict(self.server) or {}
        if self.host and not server.get("host"):
            server["host"] = self.host
        return server or None


@dataclass
class Item:
    """Request body for the item endpoint."""

    data: Data

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data.to_dict()}


@dataclass
class RollbarResponse:
    """Parsed response from the item endpoint.

    Attributes:
        err: 0 on success, non-zero when Rollbar rejected the item
        id: Item id assigned by Rollbar, when available
        uuid: Echo of the item's uuid
        message: Error description when err is non-zero
    """

    err: int
    id: str | None = None
    uuid: str | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.err == 0

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RollbarResponse":
        """Build a response from the decoded JSON body."""
        result = payload.get("result") or {}
        return cls(
            err=int(payload.get("err", 0)),
            id=result.get("id"),
            uuid=result.get("uuid"),
            message=payload.get("message"),
        )


def _as_dict(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, dict):
        return dict(value)
    return value.to_dict()


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in values.items() if value is not None}
