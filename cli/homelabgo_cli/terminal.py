from __future__ import annotations

import contextlib
import logging
import os
import selectors
import sys
import termios
import threading
import tty
from typing import IO, Iterator

from homelab_client.bridge import CONTROL_KEYS, TerminalBridge, UnknownKeyError
from homelab_client.streams import open_exec, open_logs, pump

logger = logging.getLogger(__name__)

ESCAPE_CHAR = "\x1d"  # Ctrl-]
POLL_INTERVAL_S = 0.2


class StreamDisplay:
    def __init__(self, stream: IO[str] | None = None):
        self._stream = stream or sys.stdout

    def write(self, data: str) -> None:
        self._stream.write(data)
        self._stream.flush()


@contextlib.contextmanager
def raw_mode(fd: int) -> Iterator[None]:
    saved = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def _pump_into(sock, bridge: TerminalBridge, done: threading.Event) -> None:
    try:
        if pump(sock, bridge.on_socket_message):
            bridge.on_close()
        else:
            bridge.on_error()
    finally:
        done.set()


def split_escape(data: str) -> tuple[str, bool]:
    """Return the text before the escape character and whether it was seen."""
    head, sep, _ = data.partition(ESCAPE_CHAR)
    return head, bool(sep)


def run_exec(url: str, *, display: StreamDisplay | None = None) -> None:
    display = display or StreamDisplay()
    sock = open_exec(url)
    bridge = TerminalBridge(sock, display)
    bridge.on_open()
    done = threading.Event()
    reader = threading.Thread(target=_pump_into, args=(sock, bridge, done), daemon=True)
    reader.start()
    try:
        if sys.stdin.isatty():
            _interactive_loop(bridge, done, display)
        else:
            _piped_loop(bridge, done)
    finally:
        sock.close()
        reader.join(timeout=2)


def _interactive_loop(bridge: TerminalBridge, done: threading.Event, display: StreamDisplay) -> None:
    fd = sys.stdin.fileno()
    saved = termios.tcgetattr(fd)
    sel = selectors.DefaultSelector()
    sel.register(fd, selectors.EVENT_READ)
    try:
        with raw_mode(fd):
            while not done.is_set():
                if not sel.select(timeout=POLL_INTERVAL_S):
                    continue
                chunk = os.read(fd, 1024)
                if not chunk:
                    break
                data, escaped = split_escape(chunk.decode("utf-8", errors="replace"))
                bridge.on_input(data)
                if not escaped:
                    continue
                termios.tcsetattr(fd, termios.TCSADRAIN, saved)
                try:
                    display.write(f"\r\nkey ({', '.join(CONTROL_KEYS)}; q to quit)> ")
                    name = sys.stdin.readline().strip()
                finally:
                    tty.setraw(fd)
                if name.lower() in {"q", "quit"}:
                    break
                if not name:
                    continue
                try:
                    bridge.send_key(name)
                except UnknownKeyError as e:
                    display.write(f"\r\n{e}\r\n")
    finally:
        sel.close()


def _piped_loop(bridge: TerminalBridge, done: threading.Event) -> None:
    for line in sys.stdin:
        if done.is_set():
            return
        bridge.on_input(line)
    done.wait(timeout=POLL_INTERVAL_S * 5)


def follow_logs(url: str, *, display: StreamDisplay | None = None) -> None:
    display = display or StreamDisplay()
    sock = open_logs(url)
    bridge = TerminalBridge(None, display)
    bridge.on_open()
    try:
        if pump(sock, bridge.on_socket_message):
            bridge.on_close()
        else:
            bridge.on_error()
    except KeyboardInterrupt:
        logger.debug("log follow interrupted")
    finally:
        sock.close()
