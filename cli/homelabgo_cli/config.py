from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from . import console

APP_NAME = "homelabgo"
CONFIG_FILENAME = "config.toml"
DEFAULT_BASE_URL = "https://dev.alyza.dev"

ENV_CONFIG_DIR = "HOMELABGO_CONFIG_DIR"
ENV_BASE_URL = "HOMELABGO_BASE_URL"
ENV_STORE = "HOMELABGO_STORE"

STORE_BACKENDS = ("file", "memory")

_WARNED_BASE_URL_SCHEME = False


@dataclass
class Settings:
    store: str = "file"
    timeout_s: float = 15.0
    default_shell: str = "/bin/sh"
    log_tail: int = 100


def config_dir() -> str:
    override = os.getenv(ENV_CONFIG_DIR, "").strip()
    if override:
        return override
    return user_config_dir(APP_NAME)


def config_path() -> str:
    return f"{config_dir()}/{CONFIG_FILENAME}"


def normalize_base_url(raw: str | None, *, warn: bool = False) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    value = value.rstrip("/")
    lowered = value.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return value

    host = value.split("/", 1)[0]
    host = host.split(":", 1)[0].lower()
    if host in {"localhost", "127.0.0.1", "0.0.0.0"}:
        scheme = "http://"
    else:
        scheme = "https://"

    normalized = f"{scheme}{value}"
    if warn:
        _warn_missing_scheme(normalized)
    return normalized


def _warn_missing_scheme(normalized: str) -> None:
    global _WARNED_BASE_URL_SCHEME
    if _WARNED_BASE_URL_SCHEME:
        return
    console.warn(f"server URL missing scheme, assuming {normalized}")
    _WARNED_BASE_URL_SCHEME = True


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def read_document(path: str | None = None) -> dict[str, Any]:
    path = path or config_path()
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError:
        return {}


def write_document(data: dict[str, Any], path: str | None = None) -> str:
    path = path or config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(_prune_none(data)).encode("utf-8"))
    os.chmod(path, 0o600)
    return path


def _prune_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _prune_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_prune_none(item) for item in value if item is not None]
    return value


def settings_from_toml(data: dict[str, Any]) -> Settings:
    raw = data.get("settings") or {}
    settings = Settings()
    if not isinstance(raw, dict):
        return settings
    store = str(raw.get("store") or settings.store).strip().lower()
    if store in STORE_BACKENDS:
        settings.store = store
    else:
        console.warn(f"Unknown store backend {store!r}; using {settings.store!r}.")
    try:
        settings.timeout_s = float(raw.get("timeout_s", settings.timeout_s))
    except (TypeError, ValueError):
        pass
    shell = raw.get("default_shell")
    if isinstance(shell, str) and shell.strip():
        settings.default_shell = shell.strip()
    try:
        settings.log_tail = max(1, int(raw.get("log_tail", settings.log_tail)))
    except (TypeError, ValueError):
        pass
    return settings


def load_settings() -> Settings:
    settings = settings_from_toml(read_document())
    env_store = os.getenv(ENV_STORE, "").strip().lower()
    if env_store in STORE_BACKENDS:
        settings.store = env_store
    return settings


def save_settings(settings: Settings) -> str:
    data = read_document()
    data["settings"] = {
        "store": settings.store,
        "timeout_s": settings.timeout_s,
        "default_shell": settings.default_shell,
        "log_tail": settings.log_tail,
    }
    return write_document(data)


def resolve_base_url(stored: str | None, override: str | None = None) -> str:
    """Pick the server URL: explicit override, env, stored value, default."""
    for candidate in (override, os.getenv(ENV_BASE_URL, ""), stored):
        value = normalize_base_url(candidate, warn=True)
        if value:
            return value
    return DEFAULT_BASE_URL
