# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Exceptions for Rollbar reporting."""

from typing import Any


class RollbarError(Exception):
    """Base exception for Rollbar reporting errors.

    Attributes:
        message: What went wrong, phrased for the person running the application
        advice: Optional hint on how to fix it
    """

    def __init__(self, message: str, advice: str | None = None):
        super().__init__(message)
        self.message = message
        self.advice = advice

    def __str__(self) -> str:
        if self.advice:
            return f"{self.message} {self.advice}"
        return self.message


class ConfigurationError(RollbarError):
    """Raised when the reporter configuration is invalid."""
    pass


class MissingTokenError(ConfigurationError):
    """Raised when an event is sent before an access token was configured."""

    def __init__(self):
        super().__init__(
            "No Rollbar access token has been configured.",
            "Call set_token() or set ROLLBAR_ACCESS_TOKEN before reporting events.",
        )


class TransportError(RollbarError):
    """Raised when a transport cannot be created or used."""
    pass


class DeliveryError(TransportError):
    """Raised when Rollbar did not accept a payload.

    Attributes:
        status_code: HTTP status of the response, if one was received
        response: Parsed Rollbar response body, if one was received
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response
