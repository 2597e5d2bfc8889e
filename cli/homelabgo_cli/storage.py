from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .config import Settings, config_path, read_document, write_document

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    def get(self) -> str | None: ...

    def set(self, value: str) -> None: ...

    def remove(self) -> None: ...


class FileStore:
    """One value kept in a table of the TOML config file."""

    def __init__(self, section: str, key: str, path: str | None = None):
        self.section = section
        self.key = key
        self._path = path

    @property
    def path(self) -> str:
        return self._path or config_path()

    def get(self) -> str | None:
        table = read_document(self.path).get(self.section)
        if not isinstance(table, dict):
            return None
        value = table.get(self.key)
        if isinstance(value, str) and value:
            return value
        return None

    def set(self, value: str) -> None:
        data = read_document(self.path)
        table = data.get(self.section)
        if not isinstance(table, dict):
            table = {}
        table[self.key] = value
        data[self.section] = table
        write_document(data, self.path)

    def remove(self) -> None:
        data = read_document(self.path)
        table = data.get(self.section)
        if not isinstance(table, dict) or self.key not in table:
            return
        del table[self.key]
        if table:
            data[self.section] = table
        else:
            del data[self.section]
        write_document(data, self.path)


class MemoryStore:
    """Process-local store; nothing survives the process."""

    def __init__(self, value: str | None = None):
        self._value = value

    def get(self) -> str | None:
        return self._value or None

    def set(self, value: str) -> None:
        self._value = value

    def remove(self) -> None:
        self._value = None


@dataclass
class Stores:
    token: CredentialStore
    server: CredentialStore


def open_stores(settings: Settings) -> Stores:
    if settings.store == "memory":
        return Stores(token=MemoryStore(), server=MemoryStore())
    return Stores(
        token=FileStore("auth", "token"),
        server=FileStore("server", "base_url"),
    )


def read_or_none(store: CredentialStore) -> str | None:
    """Read a store, treating an unreadable one the same as an empty one."""
    try:
        return store.get()
    except (OSError, ValueError) as e:
        logger.warning("credential store read failed: %s", e)
        return None
