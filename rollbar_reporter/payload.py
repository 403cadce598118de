# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Builders for Rollbar event payloads."""

import dataclasses
import os
import time
import traceback
import uuid
from types import TracebackType
from typing import Any

from . import __version__
from .configuration import Configuration, default_platform
from .models import Data, ExceptionInfo, Frame, Level, Message, Notifier, Trace

NOTIFIER_NAME = "rollbar-reporter"
LANGUAGE = "python"

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

# Optional Data attributes a caller may set through **fields
EVENT_FIELDS = frozenset({
    "timestamp",
    "environment",
    "code_version",
    "platform",
    "framework",
    "context",
    "title",
    "fingerprint",
    "host",
    "person",
    "request",
    "server",
    "custom",
})


def new_uuid() -> str:
    """Generate a unique identifier for de-duplicating an event."""
    return str(uuid.uuid4())


def notifier() -> Notifier:
    return Notifier(name=NOTIFIER_NAME, version=__version__)


def format_message(
    message: str,
    level: Level | str = Level.INFO,
    extra: dict[str, Any] | None = None,
    **fields: Any,
) -> Data:
    """Build an event describing a plain message.

    Args:
        message: Text of the message
        level: Severity of the event
        extra: Attributes attached to the message body itself
        **fields: Optional event attributes (environment, context, custom, ...)

    Returns:
        Event ready to be reported

    Raises:
        TypeError: If a keyword does not name an event attribute

    Example:
        >>> data = format_message("Deploy finished", level="info", context="deploy#run")
    """
    _check_fields(fields)
    return Data(
        body=Message(body=str(message), extra=dict(extra or {})),
        level=Level.parse(level),
        notifier=notifier(),
        uuid=new_uuid(),
        **fields,
    )


def format_exception(
    error: BaseException,
    level: Level | str = Level.ERROR,
    **fields: Any,
) -> Data:
    """Build an event describing an exception and its stack trace.

    Frames come from the exception's traceback. An exception that was never
    raised has no traceback, so the caller's stack is used instead, without
    the frames inside this package.

    Args:
        error: Exception to report
        level: Severity of the event
        **fields: Optional event attributes (environment, context, custom, ...)

    Returns:
        Event ready to be reported

    Raises:
        TypeError: If a keyword does not name an event attribute
    """
    _check_fields(fields)
    if error.__traceback__ is not None:
        frames = extract_frames(error.__traceback__)
    else:
        frames = _caller_frames()

    return Data(
        body=Trace(exception=get_exception(error), frames=frames),
        level=Level.parse(level),
        notifier=notifier(),
        uuid=new_uuid(),
        **fields,
    )


def get_exception(error: BaseException) -> ExceptionInfo:
    """Describe an exception's type, message and cause.

    The description is the repr of the chained cause when there is one,
    otherwise of the exception itself.
    """
    error_type = type(error)
    if error_type.__module__ == "builtins":
        class_name = error_type.__qualname__
    else:
        class_name = f"{error_type.__module__}.{error_type.__qualname__}"

    cause = error.__cause__ or error.__context__
    return ExceptionInfo(
        class_name=class_name,
        message=str(error),
        description=repr(cause if cause is not None else error),
    )


def extract_frames(tb: TracebackType | None) -> list[Frame]:
    """Convert a traceback into frames, most recent call last."""
    return [_to_frame(summary) for summary in traceback.extract_tb(tb)]


def apply_defaults(data: Data, config: Configuration) -> Data:
    """Fill an event from configuration.

    A configured environment replaces the event's own. Every other configured
    value is used only where the event left the field unset.

    Returns:
        A new Data; the input is not modified
    """
    updates: dict[str, Any] = {}

    if config.environment:
        updates["environment"] = config.environment

    for name in ("code_version", "platform", "framework", "context", "host"):
        if getattr(data, name) is None and getattr(config, name) is not None:
            updates[name] = getattr(config, name)

    if data.custom is None and config.custom is not None:
        updates["custom"] = dict(config.custom)

    if data.level is None:
        updates["level"] = Level.INFO
    if data.language is None:
        updates["language"] = LANGUAGE
    if data.timestamp is None:
        updates["timestamp"] = int(time.time())
    if data.uuid is None:
        updates["uuid"] = new_uuid()
    if data.notifier is None:
        updates["notifier"] = notifier()
    if data.platform is None and "platform" not in updates:
        updates["platform"] = default_platform()

    return dataclasses.replace(data, **updates)


def _caller_frames() -> list[Frame]:
    stack = traceback.extract_stack()
    while stack and _is_internal(stack[-1].filename):
        stack.pop()
    return [_to_frame(summary) for summary in stack]


def _is_internal(filename: str) -> bool:
    return os.path.abspath(filename).startswith(_PACKAGE_DIR + os.sep)


def _check_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - EVENT_FIELDS
    if unknown:
        raise TypeError(f"Unknown event field(s): {', '.join(sorted(unknown))}")


def _to_frame(summary: traceback.FrameSummary) -> Frame:
    colno = getattr(summary, "colno", None)
    return Frame(
        filename=summary.filename,
        lineno=summary.lineno,
        # FrameSummary columns are 0-based, Rollbar's are 1-based
        colno=colno + 1 if colno is not None else None,
        method=summary.name,
        code=summary.line or None,
    )
