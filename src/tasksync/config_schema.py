"""Unified configuration schema for tasksync.

Defines Pydantic models for the config file structure with dedicated
sections for the session and logging, plus ``StoreConnection``: the
store connection descriptor that must at least carry an access key.

Usage:
    from tasksync.config_schema import build_config, yaml_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=yaml_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_AUTH_URL = "https://identitytoolkit.googleapis.com/v1"


# ---------------------------------------------------------------------------
# Store connection descriptor
# ---------------------------------------------------------------------------


class StoreConnection(BaseModel):
    """Connection descriptor for the remote store and its identity service.

    Accepts both the camelCase keys of a web SDK config object
    (``apiKey``, ``projectId``, ``authDomain``) and snake_case keys.
    Unknown keys are ignored.
    """

    api_key: str = Field(alias="apiKey", description="Access key")
    project_id: str | None = Field(
        default=None, alias="projectId", description="Store project id"
    )
    auth_domain: str | None = Field(
        default=None, alias="authDomain", description="Auth domain"
    )
    auth_url: str = Field(
        default=DEFAULT_AUTH_URL,
        alias="authUrl",
        description="Identity Toolkit base URL (override for emulators)",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        le=300,
        description="Read timeout for sign-in requests, in seconds",
    )

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("api_key")
    @classmethod
    def _api_key_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("apiKey cannot be empty")
        return value


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class SessionSection(BaseModel):
    """Session settings from the config file.

    All fields are optional so env vars and CLI args can supply them.
    """

    app_id: str | None = Field(
        default=None, description="Namespace partitioning stored data"
    )
    store: dict[str, Any] | None = Field(
        default=None, description="Store connection descriptor"
    )
    initial_auth_token: str | None = Field(
        default=None, description="Pre-issued custom sign-in token"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str | None = Field(
        default=None, description="Log level, used when LOG_LEVEL is unset"
    )
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level configuration. ``UnifiedConfig()`` is always valid."""

    session: SessionSection = Field(default_factory=SessionSection)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged config file dict.

    Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def yaml_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Return the non-None session values for use by ``load_config()``."""
    return {
        k: v
        for k, v in unified.session.model_dump().items()
        if v is not None
    }
