from __future__ import annotations

from dataclasses import dataclass, field
from typing import NoReturn

import typer

from homelab_client import HomelabClient

from . import console
from .config import Settings, load_settings, resolve_base_url
from .http import make_client
from .session import AuthSession
from .storage import Stores, open_stores, read_or_none
from .views import ActionFailed


@dataclass
class AppState:
    settings: Settings
    stores: Stores
    base_url_override: str | None = None
    session: AuthSession = field(init=False)

    def __post_init__(self) -> None:
        self.session = AuthSession(self.stores.token, self.client)

    def client(self) -> HomelabClient:
        return make_client(self.settings, self.stores, base_url_override=self.base_url_override)

    @property
    def base_url(self) -> str:
        return resolve_base_url(read_or_none(self.stores.server), self.base_url_override)


def build_state(*, base_url_override: str | None = None) -> AppState:
    settings = load_settings()
    state = AppState(settings=settings, stores=open_stores(settings), base_url_override=base_url_override)
    state.session.load_token()
    return state


def get_state(ctx: typer.Context) -> AppState:
    root = ctx.find_root()
    if not isinstance(root.obj, AppState):
        root.obj = build_state()
    return root.obj


def require_auth(state: AppState) -> None:
    if not state.session.is_authenticated:
        console.err("Not authenticated. No token found.")
        console.info("Run: homelabgo auth login")
        raise typer.Exit(code=2)


def exit_failed(exc: ActionFailed, title: str | None = None) -> NoReturn:
    console.err(f"{title}: {exc.message}" if title else exc.message)
    if exc.unauthorized:
        console.info("Your token is invalid or expired. Run: homelabgo auth login")
    raise typer.Exit(code=2)
