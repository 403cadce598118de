# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for configuration and configuration providers."""

import os
import platform
import threading
from unittest.mock import patch

import pytest

from rollbar_reporter import (
    Configuration,
    EnvConfigProvider,
    Level,
    StaticConfigProvider,
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


class TestConfigurationDefaults:
    """Tests for Configuration defaults."""

    def test_defaults(self):
        """Test default configuration values."""
        config = Configuration()

        assert config.access_token is None
        assert config.environment is None
        assert config.log_level == Level.INFO
        assert config.platform == (platform.system().lower() or "unknown")
        assert config.custom is None

    def test_copy_is_independent(self):
        """Test that copies do not share the custom mapping."""
        config = Configuration(custom={"a": 1})

        clone = config.copy()
        clone.custom["b"] = 2

        assert config.custom == {"a": 1}


class TestGlobalConfiguration:
    """Tests for the process-wide configuration store."""

    def test_set_token(self):
        """Test setting the access token."""
        set_token("test_token")

        assert get_configuration().access_token == "test_token"

    def test_setters(self):
        """Test every single-field setter."""
        set_environment("production")
        set_host("web-1")
        set_code_version("1.2.3")
        set_log_level("warning")
        set_platform("linux")
        set_framework("flask")
        set_context("project#index")

        config = get_configuration()
        assert config.environment == "production"
        assert config.host == "web-1"
        assert config.code_version == "1.2.3"
        assert config.log_level == Level.WARNING
        assert config.platform == "linux"
        assert config.framework == "flask"
        assert config.context == "project#index"

    def test_set_log_level_invalid(self):
        """Test that an invalid level is rejected and the old one kept."""
        with pytest.raises(ValueError):
            set_log_level("loud")

        assert get_configuration().log_level == Level.INFO

    def test_set_custom_creates_mapping(self):
        """Test that set_custom creates and extends the custom mapping."""
        set_custom("owner", "Bob")
        set_custom("team", {"name": "core"})

        assert get_configuration().custom == {"owner": "Bob", "team": {"name": "core"}}

    def test_snapshot_is_not_live(self):
        """Test that get_configuration returns a copy."""
        snapshot = get_configuration()
        snapshot.access_token = "changed"

        assert get_configuration().access_token is None

    def test_configure(self):
        """Test setting several fields at once."""
        configure(access_token="abc", environment="staging", log_level="error")

        config = get_configuration()
        assert config.access_token == "abc"
        assert config.environment == "staging"
        assert config.log_level == Level.ERROR

    def test_configure_unknown_field(self):
        """Test that configure rejects unknown names without applying anything."""
        with pytest.raises(TypeError, match="Unknown configuration field"):
            configure(access_token="abc", tokn="typo")

        assert get_configuration().access_token is None

    def test_replace_and_reset(self):
        """Test replacing and resetting the whole configuration."""
        replace_configuration(Configuration(access_token="abc", code_version="9"))
        assert get_configuration().code_version == "9"

        reset_configuration()
        assert get_configuration().access_token is None
        assert get_configuration().code_version is None

    def test_concurrent_configure_is_atomic(self):
        """Test that readers never see half of a multi-field update."""
        configure(environment="env-0", code_version="v-0")
        mismatches = []

        def writer(offset):
            for i in range(offset, offset + 200):
                configure(environment=f"env-{i}", code_version=f"v-{i}")

        def reader():
            for _ in range(500):
                snapshot = get_configuration()
                if snapshot.environment[4:] != snapshot.code_version[2:]:
                    mismatches.append((snapshot.environment, snapshot.code_version))

        threads = [threading.Thread(target=writer, args=(n * 1000,)) for n in range(4)]
        threads += [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert mismatches == []


class TestConfigurationFromEnv:
    """Tests for Configuration.from_env."""

    def test_from_env(self):
        """Test loading configuration from environment variables."""
        with patch.dict(os.environ, {
            "ROLLBAR_ACCESS_TOKEN": "env-token",
            "ROLLBAR_ENVIRONMENT": "production",
            "ROLLBAR_CODE_VERSION": "abc123",
            "ROLLBAR_LOG_LEVEL": "debug",
            "ROLLBAR_PLATFORM": "docker",
        }):
            config = Configuration.from_env()

        assert config.access_token == "env-token"
        assert config.environment == "production"
        assert config.code_version == "abc123"
        assert config.log_level == Level.DEBUG
        assert config.platform == "docker"

    def test_from_env_defaults(self):
        """Test that missing variables leave defaults in place."""
        config = Configuration.from_env(StaticConfigProvider({}))

        assert config.access_token is None
        assert config.log_level == Level.INFO
        assert config.platform == Configuration().platform

    def test_from_env_invalid_level(self):
        """Test that an invalid ROLLBAR_LOG_LEVEL raises ValueError."""
        with pytest.raises(ValueError):
            Configuration.from_env(StaticConfigProvider({"ROLLBAR_LOG_LEVEL": "loud"}))


class TestConfigProviders:
    """Tests for configuration providers."""

    def test_env_provider_reads_mapping(self):
        """Test reading from an injected environment."""
        provider = EnvConfigProvider({"A": "1", "EMPTY": ""})

        assert provider.get("A") == "1"
        assert provider.get("EMPTY", "default") == "default"
        assert provider.get("MISSING") is None

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("1", True), ("YES", True), ("on", True),
        ("false", False), ("0", False), ("No", False), ("off", False),
    ])
    def test_get_bool(self, value, expected):
        """Test boolean parsing."""
        provider = EnvConfigProvider({"FLAG": value})

        assert provider.get_bool("FLAG") is expected

    def test_get_bool_unrecognised(self):
        """Test that unrecognised booleans fall back to the default."""
        provider = EnvConfigProvider({"FLAG": "maybe"})

        assert provider.get_bool("FLAG", default=True) is True

    def test_numbers(self):
        """Test integer and float parsing with fallbacks."""
        provider = StaticConfigProvider({"INT": "5", "FLOAT": "2.5", "BAD": "x"})

        assert provider.get_int("INT") == 5
        assert provider.get_float("FLOAT") == 2.5
        assert provider.get_int("BAD", 7) == 7
        assert provider.get_float("MISSING", 1.5) == 1.5

    def test_static_provider_set(self):
        """Test updating a static provider."""
        provider = StaticConfigProvider()
        provider.set("KEY", "value")

        assert provider.get("KEY") == "value"
