from __future__ import annotations

from homelab_client import HomelabClient
from homelab_client.config_types import ClientConfig

from .config import Settings, resolve_base_url
from .storage import Stores, read_or_none

USER_AGENT = "homelabgo-cli/0.1.0"


def make_client(
    settings: Settings,
    stores: Stores,
    *,
    base_url_override: str | None = None,
) -> HomelabClient:
    base_url = resolve_base_url(read_or_none(stores.server), base_url_override)
    return HomelabClient(
        ClientConfig(
            base_url=base_url,
            token_source=stores.token,
            timeout_s=settings.timeout_s,
            user_agent=USER_AGENT,
        )
    )
