from __future__ import annotations

from homelab_client.errors import AuthError, NetworkError
from homelab_client.models import AuthResponse, User

from homelabgo_cli.session import AuthSession, SessionState
from homelabgo_cli.storage import MemoryStore


class _FakeClient:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.closed = False
        self.calls: list[tuple[str, str]] = []

    def _respond(self, username: str) -> AuthResponse:
        if self.error is not None:
            raise self.error
        return AuthResponse(token="jwt-token", user=User(id=1, username=username, role="admin"))

    def auth_login(self, *, username: str, password: str) -> AuthResponse:
        self.calls.append(("login", username))
        return self._respond(username)

    def auth_register(self, *, username: str, password: str) -> AuthResponse:
        self.calls.append(("register", username))
        return self._respond(username)

    def close(self) -> None:
        self.closed = True


def _no_network():
    raise AssertionError("load_token must not build a client")


def test_load_token_is_optimistic_and_offline() -> None:
    session = AuthSession(MemoryStore("stored"), _no_network)
    assert session.state is SessionState.LOADING

    session.load_token()

    assert session.is_authenticated is True
    assert session.token == "stored"
    assert session.user is None
    assert session.state is SessionState.AUTHENTICATED


def test_load_token_without_token_is_unauthenticated() -> None:
    session = AuthSession(MemoryStore(), _no_network)
    session.load_token()
    assert session.is_loading is False
    assert session.state is SessionState.UNAUTHENTICATED


def test_login_then_logout_clears_store() -> None:
    store = MemoryStore()
    client = _FakeClient()
    session = AuthSession(store, lambda: client)

    assert session.login("alice", "pw") is True
    assert store.get() == "jwt-token"
    assert session.user is not None and session.user.username == "alice"
    assert client.closed is True

    session.logout()

    assert store.get() is None
    assert session.user is None
    assert session.token is None
    assert session.is_authenticated is False


def test_login_failure_keeps_server_message() -> None:
    store = MemoryStore()
    client = _FakeClient(AuthError(401, "invalid credentials"))
    session = AuthSession(store, lambda: client)

    assert session.login("alice", "bad") is False
    assert session.error == "invalid credentials"
    assert session.state is SessionState.ERROR
    assert store.get() is None
    assert client.closed is True

    session.clear_error()
    assert session.state is SessionState.UNAUTHENTICATED


def test_register_failure_without_message_uses_fallback() -> None:
    session = AuthSession(MemoryStore(), lambda: _FakeClient(NetworkError("")))
    assert session.register("bob", "pw") is False
    assert session.error == "Registration failed"
