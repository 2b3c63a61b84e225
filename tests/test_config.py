"""Tests for tasksync.config: store descriptor parsing and load_config().

NOT to be confused with test_config_loader.py (hierarchical YAML config)
or test_config_schema.py (Pydantic models).
"""

import json

import pytest

from tasksync.config import (
    DEFAULT_APP_ID,
    SessionConfig,
    load_config,
    parse_store_config,
)
from tasksync.errors import ConfigurationError

STORE_JSON = json.dumps({"apiKey": "env-key", "projectId": "demo"})

_ENV_VARS = (
    "TASKSYNC_APP_ID",
    "TASKSYNC_STORE_CONFIG",
    "TASKSYNC_INITIAL_AUTH_TOKEN",
    "TASKSYNC_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# -------------------------------------------------------------------------
# parse_store_config()
# -------------------------------------------------------------------------


class TestParseStoreConfig:
    """Tests for parse_store_config(): JSON text or dict input."""

    def test_json_text(self):
        connection = parse_store_config(STORE_JSON)
        assert connection.api_key == "env-key"
        assert connection.project_id == "demo"

    def test_dict(self):
        connection = parse_store_config({"api_key": "k"})
        assert connection.api_key == "k"

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing(self, raw):
        with pytest.raises(ConfigurationError, match="not found"):
            parse_store_config(raw)

    def test_invalid_json(self):
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            parse_store_config("{apiKey: nope")

    def test_non_object(self):
        with pytest.raises(ConfigurationError, match="must be a JSON object"):
            parse_store_config("[1, 2]")

    @pytest.mark.parametrize(
        "raw", ['{"projectId": "demo"}', '{"apiKey": "  "}']
    )
    def test_missing_api_key(self, raw):
        with pytest.raises(ConfigurationError, match="non-empty apiKey"):
            parse_store_config(raw)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse_store_config(None)


# -------------------------------------------------------------------------
# load_config()
# -------------------------------------------------------------------------


class TestLoadConfig:
    """Tests for load_config() precedence and defaults."""

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_APP_ID", "env-app")
        monkeypatch.setenv("TASKSYNC_STORE_CONFIG", STORE_JSON)
        monkeypatch.setenv("TASKSYNC_INITIAL_AUTH_TOKEN", " tok ")
        monkeypatch.setenv("TASKSYNC_DEBUG", "yes")

        config = load_config()

        assert isinstance(config, SessionConfig)
        assert config.app_id == "env-app"
        assert config.store.api_key == "env-key"
        assert config.initial_auth_token == "tok"
        assert config.debug is True

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_STORE_CONFIG", STORE_JSON)

        config = load_config()

        assert config.app_id == DEFAULT_APP_ID
        assert config.initial_auth_token is None
        assert config.debug is False

    def test_cli_overrides_env(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_APP_ID", "env-app")
        monkeypatch.setenv("TASKSYNC_STORE_CONFIG", STORE_JSON)

        config = load_config(
            app_id="cli-app",
            store_config='{"apiKey": "cli-key"}',
            auth_token="cli-token",
            debug=True,
        )

        assert config.app_id == "cli-app"
        assert config.store.api_key == "cli-key"
        assert config.initial_auth_token == "cli-token"
        assert config.debug is True

    def test_yaml_fallbacks_used_last(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_APP_ID", "env-app")
        fallbacks = {
            "app_id": "yaml-app",
            "store": {"apiKey": "yaml-key"},
            "initial_auth_token": "yaml-token",
            "debug": True,
        }

        config = load_config(yaml_fallbacks=fallbacks)

        assert config.app_id == "env-app"
        assert config.store.api_key == "yaml-key"
        assert config.initial_auth_token == "yaml-token"
        assert config.debug is True

    def test_env_debug_false_beats_yaml(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_DEBUG", "0")
        config = load_config(
            store_config=STORE_JSON, yaml_fallbacks={"debug": True}
        )
        assert config.debug is False

    def test_blank_app_id_uses_default(self, monkeypatch):
        monkeypatch.setenv("TASKSYNC_APP_ID", "   ")
        config = load_config(store_config=STORE_JSON)
        assert config.app_id == DEFAULT_APP_ID

    def test_blank_token_is_none(self):
        config = load_config(store_config=STORE_JSON, auth_token="  ")
        assert config.initial_auth_token is None

    def test_missing_store_config(self):
        with pytest.raises(ConfigurationError):
            load_config(app_id="x")

    def test_app_id_with_slash_rejected(self):
        with pytest.raises(ConfigurationError, match="must not contain '/'"):
            load_config(app_id="a/b", store_config=STORE_JSON)
