"""Test doubles and helpers shared across test modules."""

import itertools
from datetime import datetime, timedelta, timezone

from tasksync.core.memory import MemoryStore
from tasksync.core.models import Identity, IdentityOrigin
from tasksync.errors import AuthenticationError

BASE_TIME = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Aware datetime *minutes* after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


def task(text: str, minutes: int | None = None, completed: bool = False):
    """Wire-shape task body; ``minutes=None`` leaves the timestamp absent."""
    return {
        "text": text,
        "completed": completed,
        "timestamp": at(minutes) if minutes is not None else None,
    }


class FakeIdentityProvider:
    """IdentityProvider double with scripted outcomes.

    Each outcome is either an Identity to return or an exception to raise.
    """

    def __init__(self, custom=None, anonymous=None):
        self.custom = custom or AuthenticationError("custom token rejected")
        self.anonymous = anonymous or Identity(
            id="anon-uid", origin=IdentityOrigin.ANONYMOUS
        )
        self.calls: list[str] = []

    def _outcome(self, outcome):
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def sign_in_with_custom_token(self, token: str) -> Identity:
        self.calls.append(f"custom:{token}")
        return self._outcome(self.custom)

    def sign_in_anonymously(self) -> Identity:
        self.calls.append("anonymous")
        return self._outcome(self.anonymous)


class RecordingStore(MemoryStore):
    """MemoryStore that keeps every subscription it hands out."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.opened = []

    def subscribe(self, path):
        subscription = super().subscribe(path)
        self.opened.append(subscription)
        return subscription


def ticking_clock(start: int = 0):
    """Clock returning a strictly increasing minute on every call."""
    minutes = itertools.count(start)
    return lambda: at(next(minutes))
