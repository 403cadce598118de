# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Global hook that reports uncaught exceptions to Rollbar.

``handle_panics()`` wraps ``sys.excepthook`` and ``threading.excepthook``.
When an exception escapes the main thread or a worker thread, it is reported
and the hook that was installed before is called, so the interpreter still
prints the traceback and exits as usual.
"""

import logging
import sys
import threading
from types import TracebackType
from typing import Any, Callable

from . import client
from .models import Level
from .payload import extract_frames, format_exception

logger = logging.getLogger(__name__)

# How long the hook waits for the report to leave the process
FLUSH_TIMEOUT_SECONDS = 5.0

_lock = threading.Lock()
_installed_excepthook: Callable[..., Any] | None = None
_installed_threading_excepthook: Callable[..., Any] | None = None
_previous_excepthook: Callable[..., Any] | None = None
_previous_threading_excepthook: Callable[..., Any] | None = None
# Only hooks from the active installation report; older ones just delegate
_generation = 0
_active_generation: int | None = None


def handle_panics(level: Level | str = Level.CRITICAL, **fields: Any) -> None:
    """Report uncaught exceptions at the given level.

    Calling this again replaces the earlier installation.

    Args:
        level: Severity used for crash reports
        **fields: Event attributes added to every crash report

    Raises:
        ValueError: If level does not name a level
        TypeError: If a keyword does not name an event attribute
    """
    global _installed_excepthook, _installed_threading_excepthook
    global _previous_excepthook, _previous_threading_excepthook
    global _generation, _active_generation

    level = Level.parse(level)
    # Fail now rather than inside the hook
    format_exception(RuntimeError(), level=level, **fields)

    with _lock:
        if sys.excepthook is _installed_excepthook:
            previous_excepthook = _previous_excepthook
        else:
            previous_excepthook = sys.excepthook
        if threading.excepthook is _installed_threading_excepthook:
            previous_threading_excepthook = _previous_threading_excepthook
        else:
            previous_threading_excepthook = threading.excepthook

        _generation += 1
        generation = _generation

        def excepthook(
            exc_type: type[BaseException],
            exc_value: BaseException,
            exc_tb: TracebackType | None,
        ) -> None:
            if _active_generation == generation:
                _report_crash(exc_type, exc_value, exc_tb, level, fields)
            (previous_excepthook or sys.__excepthook__)(exc_type, exc_value, exc_tb)

        def threading_excepthook(args: threading.ExceptHookArgs) -> None:
            if _active_generation == generation and args.exc_value is not None:
                _report_crash(args.exc_type, args.exc_value, args.exc_traceback, level, fields)
            (previous_threading_excepthook or threading.__excepthook__)(args)

        _previous_excepthook = previous_excepthook
        _previous_threading_excepthook = previous_threading_excepthook
        sys.excepthook = _installed_excepthook = excepthook
        threading.excepthook = _installed_threading_excepthook = threading_excepthook
        _active_generation = generation

    logger.debug("Installed Rollbar crash handler", extra={"crash_level": level.label})


def remove_panic_handler() -> bool:
    """Restore the hooks that were active before handle_panics().

    Hooks that were wrapped by other code in the meantime stay in place but
    stop reporting.

    Returns:
        True if a handler was installed and has been removed
    """
    global _installed_excepthook, _installed_threading_excepthook
    global _previous_excepthook, _previous_threading_excepthook
    global _active_generation

    with _lock:
        removed = _active_generation is not None
        if _installed_excepthook is not None and sys.excepthook is _installed_excepthook:
            sys.excepthook = _previous_excepthook or sys.__excepthook__
        if (
            _installed_threading_excepthook is not None
            and threading.excepthook is _installed_threading_excepthook
        ):
            threading.excepthook = _previous_threading_excepthook or threading.__excepthook__

        _active_generation = None
        _installed_excepthook = None
        _installed_threading_excepthook = None
        _previous_excepthook = None
        _previous_threading_excepthook = None
        return removed


def is_installed() -> bool:
    return _active_generation is not None


def _report_crash(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: TracebackType | None,
    level: Level,
    fields: dict[str, Any],
) -> None:
    """Report a crash; never raises."""
    if issubclass(exc_type, (KeyboardInterrupt, SystemExit)):
        return

    try:
        data = format_exception(exc_value, level=level, **fields)
        if exc_tb is not None:
            data.body.frames = extract_frames(exc_tb)  # type: ignore[union-attr]
        client.report(data)
        if not client.flush(FLUSH_TIMEOUT_SECONDS):
            logger.warning("Timed out delivering crash report to Rollbar")
    except Exception as e:
        logger.warning(f"Failed to report uncaught exception to Rollbar: {e}")
