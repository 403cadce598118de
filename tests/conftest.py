# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Test fixtures for rollbar_reporter."""

from unittest.mock import MagicMock

import pytest

from rollbar_reporter import (
    SilentTransport,
    remove_panic_handler,
    reset_configuration,
    set_transport,
)


@pytest.fixture(autouse=True)
def silent_transport():
    """Isolate global state and capture module-level reports in memory."""
    reset_configuration()
    transport = SilentTransport()
    set_transport(transport)
    yield transport
    remove_panic_handler()
    set_transport(None)
    reset_configuration()


@pytest.fixture
def mock_session():
    """Create a mock requests session that accepts every item."""
    session = MagicMock()
    session.headers = {}
    session.proxies = {}
    session.post.return_value = make_response()
    return session


def make_response(status_code=200, body=None, ok=None):
    """Build a mock requests response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400 if ok is None else ok
    response.reason = "OK" if status_code < 400 else "Bad Request"
    if body is None:
        body = {"err": 0, "result": {"id": None, "uuid": "0f6b6c2e-0000-4000-8000-000000000000"}}
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def response_factory():
    """Factory for mock requests responses."""
    return make_response
