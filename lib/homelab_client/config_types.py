from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class TokenSource(Protocol):
    def get(self) -> str | None: ...


@dataclass(frozen=True)
class ClientConfig:
    base_url: str
    token_source: TokenSource | None = None
    timeout_s: float = 15.0
    user_agent: str = "homelab-client/0.1.0"
