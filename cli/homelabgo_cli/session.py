from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from homelab_client import HomelabClient
from homelab_client.errors import error_message
from homelab_client.models import AuthResponse, User

from .storage import CredentialStore

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    ERROR = "error"


class AuthSession:
    """Who is logged in, held by the running app and handed to every command."""

    def __init__(self, token_store: CredentialStore, client_factory: Callable[[], HomelabClient]):
        self._token_store = token_store
        self._client_factory = client_factory
        self.user: User | None = None
        self.token: str | None = None
        self.is_authenticated = False
        self.is_loading = True
        self.error: str | None = None

    @property
    def state(self) -> SessionState:
        if self.is_loading:
            return SessionState.LOADING
        if self.is_authenticated:
            return SessionState.AUTHENTICATED
        if self.error:
            return SessionState.ERROR
        return SessionState.UNAUTHENTICATED

    def load_token(self) -> None:
        # optimistic: a stored token counts until the server rejects it
        try:
            stored = self._token_store.get()
            if stored:
                self.token = stored
                self.is_authenticated = True
        except (OSError, ValueError) as e:
            logger.error("Failed to load token: %s", e)
        finally:
            self.is_loading = False

    def _authenticate(self, call: Callable[[HomelabClient], AuthResponse], fallback: str) -> bool:
        self.is_loading = True
        self.error = None
        client = self._client_factory()
        try:
            response = call(client)
            self._token_store.set(response.token)
            self.user = response.user
            self.token = response.token
            self.is_authenticated = True
            return True
        except Exception as e:
            logger.debug("%s: %s", fallback, e)
            self.error = error_message(e, fallback)
            return False
        finally:
            client.close()
            self.is_loading = False

    def login(self, username: str, password: str) -> bool:
        return self._authenticate(
            lambda c: c.auth_login(username=username, password=password),
            "Login failed",
        )

    def register(self, username: str, password: str) -> bool:
        return self._authenticate(
            lambda c: c.auth_register(username=username, password=password),
            "Registration failed",
        )

    def logout(self) -> None:
        self._token_store.remove()
        self.user = None
        self.token = None
        self.is_authenticated = False
        self.error = None

    def clear_error(self) -> None:
        self.error = None
