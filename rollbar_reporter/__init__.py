# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Rollbar error reporting client.

Configure a token once, then report messages and exceptions from anywhere in
the process. Uncaught exceptions can be reported automatically.

Example:
    >>> import rollbar_reporter
    >>> rollbar_reporter.set_token("post_server_item_token")
    >>> rollbar_reporter.set_environment("production")
    >>> rollbar_reporter.set_code_version("1.4.2")
    >>> rollbar_reporter.handle_panics()
    >>>
    >>> rollbar_reporter.report_message("Service started", level="info")
    >>> try:
    ...     risky()
    ... except Exception:
    ...     rollbar_reporter.report_exception(context="jobs#nightly")
"""

__version__ = "0.1.0"

from .client import (
    Client,
    flush,
    get_transport,
    report,
    report_exception,
    report_message,
    set_transport,
    shutdown,
)
from .config_provider import ConfigProvider, EnvConfigProvider, StaticConfigProvider
from .configuration import (
    Configuration,
    configure,
    get_configuration,
    replace_configuration,
    reset_configuration,
    set_code_version,
    set_context,
    set_custom,
    set_environment,
    set_framework,
    set_host,
    set_log_level,
    set_platform,
    set_token,
)
from .error_reporter import ErrorReporter, RollbarErrorReporter, create_error_reporter
from .exceptions import (
    ConfigurationError,
    DeliveryError,
    MissingTokenError,
    RollbarError,
    TransportError,
)
from .hooks import handle_panics, remove_panic_handler
from .models import (
    Data,
    ExceptionInfo,
    Frame,
    Item,
    Level,
    Message,
    Notifier,
    Person,
    Request,
    RollbarResponse,
    Server,
    Trace,
)
from .payload import apply_defaults, format_exception, format_message, get_exception
from .transport import (
    ConsoleTransport,
    HttpTransport,
    SilentTransport,
    ThreadedTransport,
    Transport,
    TransportConfig,
    TransportEvent,
    create_transport,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "Configuration",
    "configure",
    "get_configuration",
    "replace_configuration",
    "reset_configuration",
    "set_code_version",
    "set_context",
    "set_custom",
    "set_environment",
    "set_framework",
    "set_host",
    "set_log_level",
    "set_platform",
    "set_token",
    "ConfigProvider",
    "EnvConfigProvider",
    "StaticConfigProvider",
    # Reporting
    "Client",
    "flush",
    "get_transport",
    "report",
    "report_exception",
    "report_message",
    "set_transport",
    "shutdown",
    "format_exception",
    "format_message",
    "get_exception",
    "apply_defaults",
    # Crash handling
    "handle_panics",
    "remove_panic_handler",
    # Error reporter interface
    "ErrorReporter",
    "RollbarErrorReporter",
    "create_error_reporter",
    # Transports
    "ConsoleTransport",
    "HttpTransport",
    "SilentTransport",
    "ThreadedTransport",
    "Transport",
    "TransportConfig",
    "TransportEvent",
    "create_transport",
    # Models
    "Data",
    "ExceptionInfo",
    "Frame",
    "Item",
    "Level",
    "Message",
    "Notifier",
    "Person",
    "Request",
    "RollbarResponse",
    "Server",
    "Trace",
    # Exceptions
    "ConfigurationError",
    "DeliveryError",
    "MissingTokenError",
    "RollbarError",
    "TransportError",
]
