"""Tests for tasksync.config_schema Pydantic models."""

import pytest
from pydantic import ValidationError

from tasksync.config_schema import (
    DEFAULT_AUTH_URL,
    LoggingConfig,
    SessionSection,
    StoreConnection,
    UnifiedConfig,
    build_config,
    yaml_fallbacks,
)


class TestStoreConnection:
    def test_camel_case_keys(self):
        connection = StoreConnection.model_validate(
            {
                "apiKey": "k",
                "projectId": "p",
                "authDomain": "p.example.com",
                "storageBucket": "ignored",
            }
        )
        assert connection.api_key == "k"
        assert connection.project_id == "p"
        assert connection.auth_domain == "p.example.com"
        assert connection.auth_url == DEFAULT_AUTH_URL
        assert connection.timeout == 30.0

    def test_snake_case_keys(self):
        connection = StoreConnection(api_key=" k ", auth_url="http://emu/v1")
        assert connection.api_key == "k"
        assert connection.auth_url == "http://emu/v1"

    def test_blank_api_key(self):
        with pytest.raises(ValidationError):
            StoreConnection(api_key="   ")

    def test_missing_api_key(self):
        with pytest.raises(ValidationError):
            StoreConnection.model_validate({"projectId": "p"})

    @pytest.mark.parametrize("timeout", [0, -1, 301])
    def test_timeout_bounds(self, timeout):
        with pytest.raises(ValidationError):
            StoreConnection(api_key="k", timeout=timeout)

    def test_frozen(self):
        connection = StoreConnection(api_key="k")
        with pytest.raises(ValidationError):
            connection.api_key = "other"


class TestUnifiedConfig:
    def test_defaults(self):
        config = UnifiedConfig()
        assert config.session == SessionSection()
        assert config.logging == LoggingConfig()
        assert config.logging.level is None

    def test_build_config_empty(self):
        assert build_config({}) == UnifiedConfig()

    def test_build_config_sections(self):
        config = build_config(
            {
                "session": {"app_id": "yaml-app", "debug": True},
                "logging": {"level": "DEBUG", "file": "/tmp/x.log"},
            }
        )
        assert config.session.app_id == "yaml-app"
        assert config.session.debug is True
        assert config.logging.file == "/tmp/x.log"

    def test_yaml_fallbacks_drop_unset_values(self):
        config = build_config(
            {"session": {"app_id": "yaml-app", "store": {"apiKey": "k"}}}
        )
        assert yaml_fallbacks(config) == {
            "app_id": "yaml-app",
            "store": {"apiKey": "k"},
            "debug": False,
        }
