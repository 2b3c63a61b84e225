"""Shared pytest fixtures for tasksync tests."""

import pytest
from helpers import FakeIdentityProvider, RecordingStore

from tasksync.config import SessionConfig
from tasksync.config_schema import StoreConnection
from tasksync.core.models import Scope
from tasksync.errors import AuthenticationError


@pytest.fixture
def store_connection():
    return StoreConnection(api_key="test-api-key", project_id="demo")


@pytest.fixture
def session_config(store_connection):
    return SessionConfig(app_id="test-app", store=store_connection)


@pytest.fixture
def provider():
    """Provider whose anonymous sign-in succeeds as ``anon-uid``."""
    return FakeIdentityProvider()


@pytest.fixture
def failing_provider():
    """Provider on which every sign-in attempt fails."""
    return FakeIdentityProvider(
        anonymous=AuthenticationError("anonymous sign-in disabled")
    )


@pytest.fixture
def memory_store():
    return RecordingStore()


@pytest.fixture
def scope():
    return Scope(namespace="test-app", identity_id="user-1")
