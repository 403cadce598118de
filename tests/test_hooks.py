# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the uncaught exception handler."""

import sys
import threading
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest

import rollbar_reporter
from rollbar_reporter import Level, handle_panics, remove_panic_handler
from rollbar_reporter.hooks import is_installed


def _raised(error):
    """Return (type, value, traceback) for a raised error."""
    try:
        raise error
    except BaseException as e:
        return type(e), e, e.__traceback__


@pytest.fixture
def previous_hooks(monkeypatch):
    """Replace sys.excepthook with a mock before installation."""
    excepthook = MagicMock(name="excepthook")
    monkeypatch.setattr(sys, "excepthook", excepthook)
    return excepthook


@contextmanager
def mocked_threading_hook():
    """Replace threading.excepthook with a mock inside a test body."""
    original = threading.excepthook
    threading_excepthook = MagicMock(name="threading_excepthook")
    threading.excepthook = threading_excepthook
    try:
        yield threading_excepthook
    finally:
        remove_panic_handler()
        threading.excepthook = original


class TestHandlePanics:
    """Tests for handle_panics."""

    def test_reports_and_delegates(self, previous_hooks, silent_transport):
        """Test that a crash is reported and the previous hook still runs."""
        previous_excepthook = previous_hooks
        handle_panics()
        exc_info = _raised(RuntimeError("Panic"))

        sys.excepthook(*exc_info)

        data = silent_transport.items[0].data
        assert data.level == Level.CRITICAL
        assert data.body.exception.class_name == "RuntimeError"
        assert data.body.exception.message == "Panic"
        assert data.body.frames[-1].method == "_raised"
        previous_excepthook.assert_called_once_with(*exc_info)

    def test_custom_level_and_fields(self, previous_hooks, silent_transport):
        """Test reporting crashes at a chosen level with extra fields."""
        handle_panics(Level.ERROR, context="worker#main", custom={"job": "nightly"})

        sys.excepthook(*_raised(ValueError("bad")))

        data = silent_transport.items[0].data
        assert data.level == Level.ERROR
        assert data.context == "worker#main"
        assert data.custom == {"job": "nightly"}

    def test_invalid_fields_fail_at_install(self, previous_hooks):
        """Test that bad arguments are rejected before installation."""
        with pytest.raises(TypeError):
            handle_panics(colour="red")
        with pytest.raises(ValueError):
            handle_panics("loud")

        assert not is_installed()

    def test_keyboard_interrupt_not_reported(self, previous_hooks, silent_transport):
        """Test that Ctrl-C is passed through without a report."""
        previous_excepthook = previous_hooks
        handle_panics()

        sys.excepthook(*_raised(KeyboardInterrupt()))

        assert not silent_transport.has_items()
        previous_excepthook.assert_called_once()

    def test_reporting_failure_is_swallowed(self, previous_hooks, caplog):
        """Test that the hook never raises when reporting fails."""
        previous_excepthook = previous_hooks
        broken = MagicMock()
        broken.send.side_effect = RuntimeError("network down")
        rollbar_reporter.set_transport(broken)
        handle_panics()

        sys.excepthook(*_raised(ValueError("bad")))

        assert "Failed to report uncaught exception" in caplog.text
        previous_excepthook.assert_called_once()

    def test_flushes_default_transport(self, previous_hooks):
        """Test that the crash report is flushed before delegating."""
        transport = MagicMock()
        transport.flush.return_value = True
        rollbar_reporter.set_transport(transport)
        handle_panics()

        sys.excepthook(*_raised(ValueError("bad")))

        transport.send.assert_called_once()
        transport.flush.assert_called_once()

    def test_thread_exceptions(self, previous_hooks, silent_transport):
        """Test that exceptions escaping a thread are reported."""

        def worker():
            raise RuntimeError("thread crashed")

        with mocked_threading_hook() as previous_threading_excepthook:
            handle_panics()
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        data = silent_transport.items[0].data
        assert data.body.exception.message == "thread crashed"
        assert data.body.frames[-1].method == "worker"
        previous_threading_excepthook.assert_called_once()

    def test_reinstall_replaces(self, previous_hooks, silent_transport):
        """Test that installing twice reports once and keeps the original hook."""
        previous_excepthook = previous_hooks
        handle_panics(Level.ERROR)
        handle_panics(Level.WARNING)

        sys.excepthook(*_raised(ValueError("bad")))

        assert len(silent_transport.items) == 1
        assert silent_transport.items[0].data.level == Level.WARNING
        previous_excepthook.assert_called_once()

    def test_remove_restores_previous(self, previous_hooks):
        """Test that remove_panic_handler restores the original hooks."""
        previous_excepthook = previous_hooks
        previous_threading_excepthook = threading.excepthook
        handle_panics()
        assert is_installed()
        assert threading.excepthook is not previous_threading_excepthook

        assert remove_panic_handler()

        assert sys.excepthook is previous_excepthook
        assert threading.excepthook is previous_threading_excepthook
        assert not is_installed()

    def test_remove_when_not_installed(self, previous_hooks):
        """Test that removing without installing is a no-op."""
        assert not remove_panic_handler()

    def test_reinstall_over_foreign_wrapper(self, previous_hooks, silent_transport):
        """Test reinstalling after other code wrapped the installed hook."""
        previous_excepthook = previous_hooks
        handle_panics()
        installed = sys.excepthook

        def wrapper(*exc_info):
            installed(*exc_info)

        sys.excepthook = wrapper
        handle_panics()

        sys.excepthook(*_raised(ValueError("bad")))

        assert len(silent_transport.items) == 1
        previous_excepthook.assert_called_once()

    def test_removed_hook_under_wrapper_only_delegates(self, previous_hooks, silent_transport):
        """Test that a removed hook still reached through a wrapper stops reporting."""
        previous_excepthook = previous_hooks
        handle_panics()
        installed = sys.excepthook

        def wrapper(*exc_info):
            installed(*exc_info)

        sys.excepthook = wrapper
        assert remove_panic_handler()
        assert sys.excepthook is wrapper

        sys.excepthook(*_raised(ValueError("bad")))

        assert not silent_transport.has_items()
        previous_excepthook.assert_called_once()

    def test_system_exit_in_thread_not_reported(self, previous_hooks, silent_transport):
        """Test that sys.exit() inside a thread is not reported as a crash."""

        def worker():
            sys.exit(0)

        with mocked_threading_hook():
            handle_panics()
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()

        assert not silent_transport.has_items()

    def test_system_exit_not_reported(self, previous_hooks, silent_transport):
        """Test that SystemExit reaching the hook is passed through unreported."""
        previous_excepthook = previous_hooks
        handle_panics()

        sys.excepthook(*_raised(SystemExit(3)))

        assert not silent_transport.has_items()
        previous_excepthook.assert_called_once()
