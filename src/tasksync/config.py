"""Session configuration.

Reads session settings from CLI args, environment variables, .env files,
and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    TASKSYNC_APP_ID: Namespace partitioning stored data (default: default-app-id)
    TASKSYNC_STORE_CONFIG: JSON connection descriptor, must include "apiKey" (required)
    TASKSYNC_INITIAL_AUTH_TOKEN: Pre-issued custom sign-in token (optional)
    TASKSYNC_DEBUG: Enable debug logging (optional, default: false)
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .config_schema import StoreConnection
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_APP_ID = "default-app-id"


@dataclass
class SessionConfig:
    app_id: str = DEFAULT_APP_ID
    store: StoreConnection | None = None
    initial_auth_token: str | None = None
    debug: bool = False


def parse_store_config(raw: str | dict[str, Any] | None) -> StoreConnection:
    """Parse a connection descriptor given as JSON text or a dict.

    Raises:
        ConfigurationError: If the descriptor is missing, not a JSON
            object, or lacks a usable access key.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ConfigurationError(
            "Store configuration not found. Set TASKSYNC_STORE_CONFIG "
            "environment variable, pass --store-config, or add "
            "'session.store' to config.yml."
        )

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Store configuration is not valid JSON: {e}"
            ) from None

    if not isinstance(raw, dict):
        raise ConfigurationError(
            "Store configuration must be a JSON object, "
            f"got {type(raw).__name__}"
        )

    try:
        return StoreConnection.model_validate(raw)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"]) for err in e.errors()
        )
        raise ConfigurationError(
            f"Store configuration is invalid ({fields}). "
            "It must include a non-empty apiKey."
        ) from None


def load_config(
    app_id: str | None = None,
    store_config: str | None = None,
    auth_token: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> SessionConfig:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        app_id: Override namespace.
        store_config: Override connection descriptor (JSON text).
        auth_token: Override pre-issued sign-in token.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Values from the YAML ``session`` section.

    Returns:
        SessionConfig with a parsed store descriptor.

    Raises:
        ConfigurationError: If the store descriptor is missing or invalid.
    """
    fb = yaml_fallbacks or {}

    final_app_id = (
        app_id or os.getenv("TASKSYNC_APP_ID") or fb.get("app_id") or ""
    ).strip() or DEFAULT_APP_ID

    store = parse_store_config(
        store_config or os.getenv("TASKSYNC_STORE_CONFIG") or fb.get("store")
    )

    token = (
        auth_token
        or os.getenv("TASKSYNC_INITIAL_AUTH_TOKEN")
        or fb.get("initial_auth_token")
    )
    token = token.strip() if token else None

    if debug:
        final_debug = True
    else:
        env_debug = os.getenv("TASKSYNC_DEBUG")
        if env_debug is not None:
            final_debug = env_debug.lower() in ("true", "1", "yes", "on")
        else:
            final_debug = bool(fb.get("debug", False))

    if "/" in final_app_id:
        raise ConfigurationError(
            f"Invalid app id '{final_app_id}': must not contain '/'"
        )

    return SessionConfig(
        app_id=final_app_id,
        store=store,
        initial_auth_token=token or None,
        debug=final_debug,
    )
