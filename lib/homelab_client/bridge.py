"""Typed channel between a host and an embedded terminal or editor.

Every hop carries a :class:`BridgeMessage` framed as one JSON object, so
both sides agree on the message kinds instead of guessing at payloads.
"""

from __future__ import annotations

import codecs
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from .errors import NetworkError

logger = logging.getLogger(__name__)

CONTROL_KEYS: dict[str, str] = {
    "ESC": "\x1b",
    "TAB": "\t",
    "UP": "\x1b[A",
    "DOWN": "\x1b[B",
    "LEFT": "\x1b[D",
    "RIGHT": "\x1b[C",
    "CTRL+C": "\x03",
    "CTRL+Z": "\x1a",
    "HOME": "\x1b[H",
    "END": "\x1b[F",
}

STATUS_CONNECTED = "\r\n\x1b[32mHomelabGO: Connected\x1b[0m\r\n"
STATUS_CLOSED = "\r\n\x1b[31mConnection closed.\x1b[0m\r\n"
STATUS_ERROR = "\r\n\x1b[31mConnection error.\x1b[0m\r\n"


class UnknownKeyError(ValueError):
    pass


class InvalidMessageError(ValueError):
    pass


def translate_key(name: str) -> str:
    seq = CONTROL_KEYS.get((name or "").strip().upper())
    if seq is None:
        raise UnknownKeyError(f"Unknown control key {name!r}. Known: {', '.join(CONTROL_KEYS)}")
    return seq


class MessageKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    SEND_KEY = "send_key"
    STATUS = "status"
    REQUEST_CONTENT = "request_content"
    CONTENT = "content"
    ERROR = "error"


@dataclass(frozen=True)
class BridgeMessage:
    kind: MessageKind
    payload: str = ""

    def encode(self) -> str:
        return json.dumps({"type": self.kind.value, "payload": self.payload}, ensure_ascii=False)

    @classmethod
    def decode(cls, raw: str | bytes) -> BridgeMessage:
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise InvalidMessageError("bridge frame is not JSON") from e
        if not isinstance(data, dict):
            raise InvalidMessageError("bridge frame must be an object")
        try:
            kind = MessageKind(data.get("type"))
        except ValueError as e:
            raise InvalidMessageError(f"unknown message type {data.get('type')!r}") from e
        payload = data.get("payload", "")
        if not isinstance(payload, str):
            raise InvalidMessageError("message payload must be a string")
        return cls(kind=kind, payload=payload)


class Socket(Protocol):
    def send(self, message: str) -> None: ...


class Display(Protocol):
    def write(self, data: str) -> object: ...


class TerminalBridge:
    """Relay between an exec/log socket and a terminal display."""

    def __init__(self, socket: Socket | None, display: Display):
        self._socket = socket
        self._display = display
        self._open = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def is_open(self) -> bool:
        return self._open

    def on_open(self) -> None:
        self._open = True
        self._display.write(STATUS_CONNECTED)

    def on_input(self, data: str) -> bool:
        if not self._open or self._socket is None or not data:
            return False
        try:
            self._socket.send(data)
        except NetworkError as e:
            # peer closed between the open check and the send
            logger.debug("terminal send failed: %s", e)
            self.on_close()
            return False
        return True

    def send_key(self, name: str) -> bool:
        return self.on_input(translate_key(name))

    def on_socket_message(self, data: str | bytes) -> None:
        if isinstance(data, bytes):
            data = self._decoder.decode(data)
        if data:
            self._display.write(data)

    def on_close(self) -> None:
        if not self._open:
            return
        self._open = False
        self._display.write(STATUS_CLOSED)

    def on_error(self, exc: BaseException | None = None) -> None:
        if exc is not None:
            logger.debug("terminal socket error: %s", exc)
        self._open = False
        self._display.write(STATUS_ERROR)

    def dispatch(self, message: BridgeMessage) -> None:
        if message.kind is MessageKind.INPUT:
            self.on_input(message.payload)
        elif message.kind is MessageKind.SEND_KEY:
            self.send_key(message.payload)
        elif message.kind in (MessageKind.OUTPUT, MessageKind.STATUS):
            self._display.write(message.payload)
        else:
            raise InvalidMessageError(f"terminal cannot handle {message.kind.value!r}")


class EditorEndpoint(Protocol):
    def handle(self, message: BridgeMessage) -> BridgeMessage | None: ...


class BufferEditor:
    """Editor side of the channel: holds the buffer and answers content requests."""

    def __init__(self, text: str = ""):
        self.text = text

    def handle(self, message: BridgeMessage) -> BridgeMessage | None:
        if message.kind is MessageKind.REQUEST_CONTENT:
            return BridgeMessage(MessageKind.CONTENT, self.text)
        if message.kind is MessageKind.CONTENT:
            self.text = message.payload
            return None
        return BridgeMessage(MessageKind.ERROR, f"unsupported message {message.kind.value}")


class FileClient(Protocol):
    def container_file_content(self, container_id: str, path: str): ...

    def container_file_save(self, container_id: str, path: str, content: str): ...


class EditorBridge:
    """Fetch a container file once, hand it to an editor, save the buffer back."""

    def __init__(self, client: FileClient, container_id: str, path: str, editor: EditorEndpoint):
        self._client = client
        self._container_id = container_id
        self._path = path
        self._editor = editor
        self.original: str | None = None

    def _roundtrip(self, message: BridgeMessage) -> BridgeMessage | None:
        reply = self._editor.handle(BridgeMessage.decode(message.encode()))
        if reply is None:
            return None
        return BridgeMessage.decode(reply.encode())

    def load(self) -> str:
        content = self._client.container_file_content(self._container_id, self._path).content
        self.original = content
        self._roundtrip(BridgeMessage(MessageKind.CONTENT, content))
        return content

    def current_buffer(self) -> str:
        reply = self._roundtrip(BridgeMessage(MessageKind.REQUEST_CONTENT))
        if reply is None or reply.kind is not MessageKind.CONTENT:
            detail = reply.payload if reply is not None else "no reply"
            raise InvalidMessageError(f"editor did not return content: {detail}")
        return reply.payload

    def is_dirty(self) -> bool:
        return self.current_buffer() != (self.original or "")

    def save(self) -> str:
        text = self.current_buffer()
        self._client.container_file_save(self._container_id, self._path, text)
        self.original = text
        return text
