# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Reporter configuration and the process-wide configuration store."""

import copy
import platform as _platform
import threading
from dataclasses import dataclass, field, fields
from typing import Any

from .config_provider import ConfigProvider, EnvConfigProvider
from .models import Level


def default_platform() -> str:
    """Name of the running operating system, e.g. "linux"."""
    return _platform.system().lower() or "unknown"


@dataclass
class Configuration:
    """Settings applied to every reported event.

    Attributes:
        access_token: Project access token with post_server_item scope
        environment: Deployment environment; overrides the event's own value
        host: Server name reported as server.host
        code_version: Version or revision of the running code
        log_level: Events below this level are dropped
        platform: Platform name; defaults to the running OS
        framework: Application framework, if any
        context: Default context for events that do not set one
        custom: Attributes attached to events that do not set their own
    """

    access_token: str | None = None
    environment: str | None = None
    host: str | None = None
    code_version: str | None = None
    log_level: Level = Level.INFO
    platform: str | None = field(default_factory=default_platform)
    framework: str | None = None
    context: str | None = None
    custom: dict[str, Any] | None = None

    @classmethod
    def from_env(cls, provider: ConfigProvider | None = None) -> "Configuration":
        """Load configuration from ROLLBAR_* settings.

        Args:
            provider: Source of settings (defaults to environment variables)

        Returns:
            Configuration with unset keys left at their defaults

        Raises:
            ValueError: If ROLLBAR_LOG_LEVEL does not name a level
        """
        provider = provider or EnvConfigProvider()
        config = cls(
            access_token=provider.get("ROLLBAR_ACCESS_TOKEN"),
            environment=provider.get("ROLLBAR_ENVIRONMENT"),
            host=provider.get("ROLLBAR_HOST"),
            code_version=provider.get("ROLLBAR_CODE_VERSION"),
            framework=provider.get("ROLLBAR_FRAMEWORK"),
            context=provider.get("ROLLBAR_CONTEXT"),
        )

        log_level = provider.get("ROLLBAR_LOG_LEVEL")
        if log_level:
            config.log_level = Level.parse(log_level)

        platform = provider.get("ROLLBAR_PLATFORM")
        if platform:
            config.platform = platform

        return config

    def copy(self) -> "Configuration":
        """Return an independent copy, including the custom mapping."""
        return copy.deepcopy(self)


_FIELD_NAMES = frozenset(f.name for f in fields(Configuration))

_lock = threading.RLock()
_config = Configuration()


def get_configuration() -> Configuration:
    """Return a snapshot of the process-wide configuration."""
    with _lock:
        return _config.copy()


def configure(**values: Any) -> None:
    """Set several configuration fields at once.

    Raises:
        TypeError: If a keyword does not name a configuration field
    """
    unknown = set(values) - _FIELD_NAMES
    if unknown:
        raise TypeError(f"Unknown configuration field(s): {', '.join(sorted(unknown))}")

    if "log_level" in values:
        values["log_level"] = Level.parse(values["log_level"])

    with _lock:
        for name, value in values.items():
            setattr(_config, name, value)


def replace_configuration(config: Configuration) -> None:
    """Replace the process-wide configuration with a copy of ``config``."""
    global _config
    with _lock:
        _config = config.copy()


def reset_configuration() -> None:
    """Restore the process-wide configuration to its defaults."""
    replace_configuration(Configuration())


def set_token(token: str) -> None:
    with _lock:
        _config.access_token = token


def set_environment(environment: str) -> None:
    with _lock:
        _config.environment = environment


def set_host(host: str) -> None:
    with _lock:
        _config.host = host


def set_code_version(code_version: str) -> None:
    with _lock:
        _config.code_version = code_version


def set_log_level(level: Level | str) -> None:
    parsed = Level.parse(level)
    with _lock:
        _config.log_level = parsed


def set_platform(platform: str) -> None:
    with _lock:
        _config.platform = platform


def set_framework(framework: str) -> None:
    with _lock:
        _config.framework = framework


def set_context(context: str) -> None:
    with _lock:
        _config.context = context


def set_custom(key: str, value: Any) -> None:
    """Attach a custom attribute to every event that sets no custom data."""
    with _lock:
        if _config.custom is None:
            _config.custom = {}
        _config.custom[key] = value
