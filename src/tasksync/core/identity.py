"""Sign-in against the identity service.

``IdentityToolkitProvider`` talks to the Identity Toolkit REST API with
``requests``; one Session is kept per thread. Both sign-in paths return
an ``Identity`` or raise ``AuthenticationError``.
"""

import logging
import threading
from typing import Any, Protocol

import requests

from ..config_schema import StoreConnection
from ..errors import AuthenticationError
from .models import Identity, IdentityOrigin

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    """Performs sign-in. Both methods block and raise AuthenticationError."""

    def sign_in_with_custom_token(self, token: str) -> Identity: ...

    def sign_in_anonymously(self) -> Identity: ...


class IdentityToolkitProvider:
    """Sign-in against the Identity Toolkit REST API.

    Anonymous sign-in uses ``accounts:signUp``. Custom-token sign-in uses
    ``accounts:signInWithCustomToken`` and then ``accounts:lookup`` to
    read the uid, which the token exchange does not return.
    """

    def __init__(self, connection: StoreConnection):
        self.connection = connection
        self._thread_local = threading.local()

    @property
    def session(self) -> requests.Session:
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = requests.Session()
        return self._thread_local.session

    def _endpoint(self, method: str) -> str:
        return f"{self.connection.auth_url.rstrip('/')}/accounts:{method}"

    def _post(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        """
        POST to an accounts endpoint and return the decoded JSON body.
        """
        try:
            response = self._get_session().post(
                self._endpoint(method),
                params={"key": self.connection.api_key},
                json=payload,
                timeout=(10, self.connection.timeout),
            )
            response.raise_for_status()
            body = response.json()
        except requests.HTTPError as e:
            raise AuthenticationError(
                f"accounts:{method} rejected: {_error_message(e.response)}"
            ) from e
        except requests.RequestException as e:
            raise AuthenticationError(
                f"accounts:{method} request failed: {e}"
            ) from e
        except ValueError as e:
            raise AuthenticationError(
                f"accounts:{method} returned invalid JSON"
            ) from e

        if not isinstance(body, dict):
            raise AuthenticationError(
                f"accounts:{method} returned unexpected payload"
            )
        return body

    def sign_in_anonymously(self) -> Identity:
        body = self._post("signUp", {"returnSecureToken": True})
        uid = body.get("localId")
        if not uid:
            raise AuthenticationError("accounts:signUp returned no localId")
        logger.debug("Anonymous sign-in succeeded for %s", uid)
        return Identity(
            id=uid,
            origin=IdentityOrigin.ANONYMOUS,
            id_token=body.get("idToken"),
        )

    def sign_in_with_custom_token(self, token: str) -> Identity:
        body = self._post(
            "signInWithCustomToken",
            {"token": token, "returnSecureToken": True},
        )
        id_token = body.get("idToken")
        if not id_token:
            raise AuthenticationError(
                "accounts:signInWithCustomToken returned no idToken"
            )

        lookup = self._post("lookup", {"idToken": id_token})
        users = lookup.get("users") or []
        uid = users[0].get("localId") if users else None
        if not uid:
            raise AuthenticationError("accounts:lookup returned no user")
        logger.debug("Custom-token sign-in succeeded for %s", uid)
        return Identity(
            id=uid, origin=IdentityOrigin.CUSTOM, id_token=id_token
        )


def _error_message(response: requests.Response | None) -> str:
    """Pull ``error.message`` out of an API error body, if present."""
    if response is None:
        return "no response"
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}"
