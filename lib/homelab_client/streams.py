from __future__ import annotations

import logging
from typing import Callable, Iterator

from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI
from websockets.sync.client import ClientConnection, connect

from .errors import NetworkError

logger = logging.getLogger(__name__)

SHELLS = ("/bin/sh", "/bin/bash", "/bin/ash", "/bin/zsh")


class Channel:
    """One open exec/logs socket. Sending to a closed peer raises NetworkError."""

    def __init__(self, conn: ClientConnection):
        self._conn = conn

    def send(self, message: str) -> None:
        try:
            self._conn.send(message)
        except ConnectionClosed as e:
            raise NetworkError(f"WebSocket closed: {e}") from e

    def close(self) -> None:
        self._conn.close()

    def __iter__(self) -> Iterator[str | bytes]:
        return iter(self._conn)


def open_socket(url: str, *, open_timeout: float | None = 15.0) -> Channel:
    try:
        return Channel(connect(url, open_timeout=open_timeout))
    except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as e:
        raise NetworkError(f"WebSocket connection failed: {e}") from e


def open_exec(url: str) -> Channel:
    return open_socket(url)


def open_logs(url: str) -> Channel:
    return open_socket(url)


def pump(sock: Channel, on_message: Callable[[str | bytes], None]) -> bool:
    """Deliver every frame to ``on_message`` until the socket closes.

    Returns False when the connection dropped instead of closing cleanly.
    """
    try:
        for message in sock:
            on_message(message)
    except ConnectionClosed as e:
        logger.debug("socket dropped: %s", e)
        return False
    return True
