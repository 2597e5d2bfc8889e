from __future__ import annotations

import os
import stat

from homelabgo_cli import config
from homelabgo_cli.storage import FileStore, MemoryStore, open_stores, read_or_none


def _isolate(tmp_path, monkeypatch) -> None:
    def _config_dir(_: str) -> str:
        return str(tmp_path)

    monkeypatch.delenv(config.ENV_CONFIG_DIR, raising=False)
    monkeypatch.delenv(config.ENV_BASE_URL, raising=False)
    monkeypatch.delenv(config.ENV_STORE, raising=False)
    monkeypatch.setattr(config, "user_config_dir", _config_dir)


def test_normalize_base_url_defaults_to_https() -> None:
    assert config.normalize_base_url("homelab.example.com") == "https://homelab.example.com"


def test_normalize_base_url_defaults_to_http_for_localhost() -> None:
    assert config.normalize_base_url("localhost:8080/") == "http://localhost:8080"


def test_resolve_base_url_precedence(monkeypatch) -> None:
    monkeypatch.delenv(config.ENV_BASE_URL, raising=False)
    assert config.resolve_base_url(None) == config.DEFAULT_BASE_URL
    assert config.resolve_base_url("http://stored.test") == "http://stored.test"
    monkeypatch.setenv(config.ENV_BASE_URL, "http://env.test/")
    assert config.resolve_base_url("http://stored.test") == "http://env.test"
    assert config.resolve_base_url("http://stored.test", "http://flag.test") == "http://flag.test"


def test_file_store_roundtrip_is_private(tmp_path, monkeypatch) -> None:
    _isolate(tmp_path, monkeypatch)
    token = FileStore("auth", "token")
    server = FileStore("server", "base_url")

    assert token.get() is None
    token.set("abc")
    server.set("http://homelab.test")

    path = tmp_path / "config.toml"
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
    assert token.get() == "abc"

    token.remove()
    assert token.get() is None
    assert server.get() == "http://homelab.test"
    assert "[auth]" not in path.read_text(encoding="utf-8")


def test_settings_select_memory_store(tmp_path, monkeypatch) -> None:
    _isolate(tmp_path, monkeypatch)
    (tmp_path / "config.toml").write_text('[settings]\nstore = "memory"\nlog_tail = 20\n', encoding="utf-8")

    settings = config.load_settings()
    stores = open_stores(settings)

    assert settings.store == "memory"
    assert settings.log_tail == 20
    assert isinstance(stores.token, MemoryStore)


def test_env_store_override_and_unknown_backend(tmp_path, monkeypatch) -> None:
    _isolate(tmp_path, monkeypatch)
    (tmp_path / "config.toml").write_text('[settings]\nstore = "vault"\n', encoding="utf-8")
    assert config.load_settings().store == "file"

    monkeypatch.setenv(config.ENV_STORE, "memory")
    assert config.load_settings().store == "memory"


def test_read_or_none_treats_corrupt_file_as_empty(tmp_path, monkeypatch) -> None:
    _isolate(tmp_path, monkeypatch)
    (tmp_path / "config.toml").write_text("not = [valid", encoding="utf-8")
    assert read_or_none(FileStore("auth", "token")) is None
